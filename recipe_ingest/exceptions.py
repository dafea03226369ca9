"""Exceptions raised by the recipe ingestion package."""
from __future__ import annotations

from .const import SCRAPE_FAILED_MESSAGE


class RecipeIngestError(Exception):
    """Base class for all recipe ingestion errors."""


class ScrapeFailed(RecipeIngestError):
    """The recipe page could not be fetched or parsed.

    The message is always the generic, user-facing retry hint. The
    underlying cause is chained (``raise ... from err``) and logged, never
    exposed to the caller.
    """

    def __init__(self, message: str = SCRAPE_FAILED_MESSAGE) -> None:
        super().__init__(message)


class UnparseableQuantity(RecipeIngestError, ValueError):
    """A quantity token matched none of the numeric forms."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unparseable quantity: {token!r}")
        self.token = token


class InvalidRequest(RecipeIngestError):
    """Request data failed schema validation."""


class RecipeNotFound(RecipeIngestError, KeyError):
    """No recipe with the given id exists for the owning user."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(recipe_id)
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        return f"Recipe not found: {self.recipe_id}"
