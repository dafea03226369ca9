"""
Configuration for the recipe ingestion package.

A single IngestConfig is built once at startup with load_config() and
passed explicitly to the pipeline, the scraper and the service handlers.
Raw values (environment variables or an overrides dict) are validated and
coerced with a voluptuous schema before the immutable config is created.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import voluptuous as vol
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .const import (
    ENV_PREFIX,
    CONF_TIMEOUT,
    CONF_USER_AGENT,
    CONF_MAX_RESPONSE_SIZE,
    CONF_MAX_REDIRECTS,
    CONF_USE_CLOUDSCRAPER,
    CONF_FRACTION_TOLERANCE,
    CONF_MIN_DISPLAY_VALUE,
    CONF_CONVERT_UNITS,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_MAX_RESPONSE_SIZE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_USE_CLOUDSCRAPER,
    DEFAULT_FRACTION_TOLERANCE,
    DEFAULT_MIN_DISPLAY_VALUE,
    DEFAULT_CONVERT_UNITS,
)

_LOGGER = logging.getLogger(__name__)

_POSITIVE_FLOAT = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_TIMEOUT, default=DEFAULT_TIMEOUT): _POSITIVE_FLOAT,
        vol.Optional(CONF_USER_AGENT, default=DEFAULT_USER_AGENT): vol.All(
            str, vol.Length(min=1)
        ),
        vol.Optional(CONF_MAX_RESPONSE_SIZE, default=DEFAULT_MAX_RESPONSE_SIZE): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(CONF_MAX_REDIRECTS, default=DEFAULT_MAX_REDIRECTS): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(CONF_USE_CLOUDSCRAPER, default=DEFAULT_USE_CLOUDSCRAPER): vol.Boolean(),
        vol.Optional(CONF_FRACTION_TOLERANCE, default=DEFAULT_FRACTION_TOLERANCE): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=0.5)
        ),
        vol.Optional(CONF_MIN_DISPLAY_VALUE, default=DEFAULT_MIN_DISPLAY_VALUE): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional(CONF_CONVERT_UNITS, default=DEFAULT_CONVERT_UNITS): vol.Boolean(),
    },
    extra=vol.REMOVE_EXTRA,
)

CONFIG_KEYS = (
    CONF_TIMEOUT,
    CONF_USER_AGENT,
    CONF_MAX_RESPONSE_SIZE,
    CONF_MAX_REDIRECTS,
    CONF_USE_CLOUDSCRAPER,
    CONF_FRACTION_TOLERANCE,
    CONF_MIN_DISPLAY_VALUE,
    CONF_CONVERT_UNITS,
)


class IngestConfig(BaseModel):
    """Process-wide settings for fetching, extraction and display scaling.

    Attributes:
        timeout: Fetch timeout in seconds, covering the whole download
        user_agent: Browser-like User-Agent sent by the plain requests session
        max_response_size: Largest accepted response body in bytes
        max_redirects: Redirects followed before giving up
        use_cloudscraper: Fetch through cloudscraper instead of plain requests
        fraction_tolerance: Tolerance for snapping to a common fraction
        min_display_value: Quantities below this render as "0"
        convert_units: Convert imperial units to metric when scaling
    """

    model_config = ConfigDict(frozen=True)

    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    use_cloudscraper: bool = DEFAULT_USE_CLOUDSCRAPER
    fraction_tolerance: float = DEFAULT_FRACTION_TOLERANCE
    min_display_value: float = DEFAULT_MIN_DISPLAY_VALUE
    convert_units: bool = DEFAULT_CONVERT_UNITS


def _from_environment(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect configuration values from RECIPE_INGEST_* variables."""
    raw: dict[str, Any] = {}
    for key in CONFIG_KEYS:
        env_key = f"{ENV_PREFIX}{key.upper()}"
        if env_key in env:
            raw[key] = env[env_key]
    return raw


def load_config(
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> IngestConfig:
    """Build the configuration from environment variables and overrides.

    Args:
        overrides: Explicit values taking precedence over the environment
        env: Environment mapping to read; defaults to os.environ after
            loading a .env file

    Returns:
        Validated, immutable IngestConfig

    Raises:
        voluptuous.Invalid: If a value fails validation
    """
    if env is None:
        load_dotenv()
        env = os.environ

    raw = _from_environment(env)
    if overrides:
        raw.update(overrides)

    validated = CONFIG_SCHEMA(raw)
    _LOGGER.debug("Loaded configuration: %s",
                  {k: v for k, v in validated.items() if k != CONF_USER_AGENT})
    return IngestConfig(**validated)
