"""
Recipe Ingestion Service.

This module orchestrates the ingestion of a recipe from a URL: fetch the
page, try the JSON-LD extractor, fall back to the heuristic DOM extractor,
and post-process the result into a detached PartialRecipe.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from bs4 import BeautifulSoup

from ..config import IngestConfig
from ..const import (
    DATA_EXTRACTION_METHOD,
    DATA_MESSAGE,
    EVENT_EXTRACTION_COMPLETE,
    EVENT_METHOD_DETECTED,
    EXTRACTION_HEURISTIC,
    EXTRACTION_JSONLD,
    PLACEHOLDER_INSTRUCTION,
)
from ..exceptions import ScrapeFailed
from ..extractors.scraper import fetch_html, parse_html
from ..models.recipe import InstructionSection, InstructionStep, PartialRecipe
from ..parsers import media
from ..parsers.base_parser import EventCallback
from ..parsers.dom_parser import HeuristicDomParser, content_copy
from ..parsers.jsonld_parser import JSONLDRecipeParser
from ..parsers.text_filters import has_usable_instruction

_LOGGER = logging.getLogger(__name__)

Fetcher = Callable[[str, IngestConfig], "bytes | str"]


def _instructions_incomplete(recipe: PartialRecipe) -> bool:
    steps = [step.text for section in recipe.instructions for step in section.steps]
    if not steps or steps == [PLACEHOLDER_INSTRUCTION]:
        return True
    return len(steps) <= 1 or not has_usable_instruction(steps)


class RecipeIngestionPipeline:
    """Turns a recipe page URL into a PartialRecipe.

    Args:
        config: Process-wide settings; defaults are used when omitted
        fetcher: Callable (url, config) returning the page HTML; defaults to
            the HTTP fetch
        event_callback: Optional callback receiving extraction events
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        fetcher: Fetcher | None = None,
        event_callback: EventCallback | None = None,
    ) -> None:
        self.config = config or IngestConfig()
        self._fetch = fetcher or fetch_html
        self.event_callback = event_callback
        self.jsonld_parser = JSONLDRecipeParser(event_callback)
        self.dom_parser = HeuristicDomParser(event_callback)

    def _emit(self, event_type: str, data: dict) -> None:
        if self.event_callback:
            self.event_callback(event_type, data)

    def _augment(self, recipe: PartialRecipe, soup: BeautifulSoup,
                 url: str | None) -> PartialRecipe:
        """Fill fields structured data rarely carries from the markup."""
        updates = {}
        page = content_copy(soup)

        if not recipe.video_url:
            video_url = media.find_video(page)
            if video_url:
                _LOGGER.debug("Found video URL via markup: %s", video_url)
                updates["video_url"] = video_url

        if _instructions_incomplete(recipe):
            _LOGGER.debug("JSON-LD instructions incomplete, trying markup extraction")
            steps = self.dom_parser.extract_instruction_texts(page)
            if steps:
                _LOGGER.debug("Using %d instructions from markup instead of JSON-LD",
                              len(steps))
                updates["instructions"] = [InstructionSection(
                    steps=[InstructionStep(text=text) for text in steps]
                )]

        return recipe.model_copy(update=updates) if updates else recipe

    def parse_document(self, soup: BeautifulSoup, url: str | None = None) -> PartialRecipe:
        """Extract a recipe from an already parsed document.

        Never fails for missing fields; they degrade to empty values or the
        placeholder instruction.
        """
        recipe = self.jsonld_parser.parse(soup, url)
        if recipe is not None:
            method = EXTRACTION_JSONLD
            self._emit(EVENT_METHOD_DETECTED, {
                DATA_EXTRACTION_METHOD: method,
                DATA_MESSAGE: "Found structured recipe data",
            })
            recipe = self._augment(recipe, soup, url)
        else:
            method = EXTRACTION_HEURISTIC
            self._emit(EVENT_METHOD_DETECTED, {
                DATA_EXTRACTION_METHOD: method,
                DATA_MESSAGE: "No structured data found, using page heuristics",
            })
            recipe = self.dom_parser.parse(soup, url)

        _LOGGER.info(
            "Extracted recipe '%s' with %d ingredients and %d steps (%s)",
            recipe.title,
            recipe.ingredient_count(),
            recipe.step_count(),
            method,
        )
        self._emit(EVENT_EXTRACTION_COMPLETE, {
            DATA_EXTRACTION_METHOD: method,
            "title": recipe.title,
            "ingredient_count": recipe.ingredient_count(),
            "step_count": recipe.step_count(),
        })
        return recipe

    def ingest(self, url: str) -> PartialRecipe:
        """Fetch a recipe page and extract a PartialRecipe from it.

        Args:
            url: The recipe page URL

        Returns:
            The extracted recipe with source_url set, not yet persisted

        Raises:
            ScrapeFailed: If the page cannot be fetched or parsed
        """
        _LOGGER.info("Starting recipe ingestion from %s", url)
        try:
            html = self._fetch(url, self.config)
            soup = parse_html(html)
            recipe = self.parse_document(soup, url)
        except ScrapeFailed:
            raise
        except Exception as err:
            _LOGGER.error("Error extracting recipe from %s: %s", url, err, exc_info=True)
            raise ScrapeFailed() from err

        return recipe.model_copy(update={"source_url": url})

    async def async_ingest(self, url: str) -> PartialRecipe:
        """Run ingest in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.ingest, url)
