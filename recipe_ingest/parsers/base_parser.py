"""
Base Recipe Parser.

This module defines the base interface that all recipe extractors must implement.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup

from ..models.recipe import PartialRecipe

EventCallback = Callable[[str, dict[str, Any]], None]


class BaseRecipeParser(ABC):
    """Abstract base class for recipe extractors.

    All extractors implement the parse method to turn a parsed HTML
    document into a detached PartialRecipe. Extraction decisions are
    reported through the optional event callback.
    """

    def __init__(self, event_callback: EventCallback | None = None) -> None:
        self.event_callback = event_callback

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        if self.event_callback:
            self.event_callback(event_type, data)

    @abstractmethod
    def parse(self, soup: BeautifulSoup, url: str | None = None) -> PartialRecipe | None:
        """Extract recipe information from a document.

        Args:
            soup: The parsed HTML document
            url: The page URL, used to resolve relative links

        Returns:
            A PartialRecipe, or None if this extractor finds no recipe
        """
        pass
