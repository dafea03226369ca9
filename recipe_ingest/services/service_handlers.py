"""
Service Handlers.

This module contains the request boundary of the package: plain handler
functions taking a data dict, validating it with a voluptuous schema and
returning a JSON-ready dict. Failures are reported as {"error": message}
and never raised to the transport.
"""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from ..config import IngestConfig
from ..const import (
    DATA_CONVERT_UNITS,
    DATA_ERROR,
    DATA_INGREDIENTS,
    DATA_MULTIPLIER,
    DATA_SECTIONS,
    DATA_URL,
    SCRAPE_FAILED_MESSAGE,
)
from ..exceptions import InvalidRequest, RecipeIngestError
from ..storage.repository import RecipeRepository
from .portion_scaler import scale_sections
from .recipe_service import RecipeIngestionPipeline

_LOGGER = logging.getLogger(__name__)

INGEST_SCHEMA = vol.Schema(
    {
        vol.Required(DATA_URL): vol.All(str, vol.Url()),
    },
    extra=vol.REMOVE_EXTRA,
)

SCALE_SCHEMA = vol.Schema(
    {
        vol.Required(DATA_INGREDIENTS): vol.Any([vol.Any(str, dict)], None),
        vol.Optional(DATA_MULTIPLIER, default=1): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
        vol.Optional(DATA_CONVERT_UNITS): vol.Boolean(),
    },
    extra=vol.REMOVE_EXTRA,
)


def _validate(schema: vol.Schema, data: Any) -> dict[str, Any]:
    try:
        return schema(data)
    except vol.Invalid as err:
        _LOGGER.warning("Invalid request data: %s", err)
        raise InvalidRequest(f"Invalid request: {err}") from err


def handle_ingest(data: dict[str, Any], pipeline: RecipeIngestionPipeline) -> dict[str, Any]:
    """Handle an ingest request.

    Args:
        data: Request data with url
        pipeline: The ingestion pipeline

    Returns:
        The extracted recipe as camelCase JSON, or a dict with an error
    """
    try:
        url = _validate(INGEST_SCHEMA, data)[DATA_URL]
        recipe = pipeline.ingest(url)
    except RecipeIngestError as err:
        return {DATA_ERROR: str(err)}
    except Exception as err:
        _LOGGER.error("Recipe ingestion failed for %s: %s",
                      data.get(DATA_URL), err, exc_info=True)
        return {DATA_ERROR: SCRAPE_FAILED_MESSAGE}

    _LOGGER.info("Recipe ingestion successful for %s", url)
    return recipe.to_json()


def handle_import(
    data: dict[str, Any],
    pipeline: RecipeIngestionPipeline,
    repository: RecipeRepository,
    owner_id: str,
) -> dict[str, Any]:
    """Handle an ingest-and-save request.

    Nothing is persisted when ingestion fails.

    Args:
        data: Request data with url
        pipeline: The ingestion pipeline
        repository: Where the recipe is saved
        owner_id: The user the recipe belongs to

    Returns:
        The saved recipe as camelCase JSON, or a dict with an error
    """
    try:
        url = _validate(INGEST_SCHEMA, data)[DATA_URL]
        partial = pipeline.ingest(url)
        recipe = repository.create_recipe(
            partial.model_copy(update={"source_url": url}), owner_id
        )
    except RecipeIngestError as err:
        return {DATA_ERROR: str(err)}
    except Exception as err:
        _LOGGER.error("Recipe import failed for %s: %s",
                      data.get(DATA_URL), err, exc_info=True)
        return {DATA_ERROR: SCRAPE_FAILED_MESSAGE}

    _LOGGER.info("Imported recipe '%s' as %s", recipe.title, recipe.id)
    return recipe.to_json()


def handle_scale(data: dict[str, Any], config: IngestConfig | None = None) -> dict[str, Any]:
    """Handle a portion scaling request.

    Args:
        data: Request data with ingredients, optional multiplier and
            convert_units
        config: Formatting tolerances and the unit conversion default

    Returns:
        Dictionary with the scaled sections, or a dict with an error
    """
    try:
        request = _validate(SCALE_SCHEMA, data)
        sections = scale_sections(
            request[DATA_INGREDIENTS],
            request[DATA_MULTIPLIER],
            config,
            request.get(DATA_CONVERT_UNITS),
        )
    except (RecipeIngestError, ValueError) as err:
        return {DATA_ERROR: str(err)}

    return {DATA_SECTIONS: [section.to_json() for section in sections]}
