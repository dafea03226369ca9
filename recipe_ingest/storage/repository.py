"""
Recipe Repository.

This module defines the persistence interface the ingestion pipeline hands
recipes to, and an in-memory implementation used by the service handlers,
the CLI and the tests. Every operation is scoped to the owning user.
"""
from __future__ import annotations

import itertools
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic.alias_generators import to_camel

from ..exceptions import RecipeNotFound
from ..models.recipe import PartialRecipe, Recipe

_LOGGER = logging.getLogger(__name__)

_IDENTITY_FIELDS = ("id", "owner_id", "created_at")


def _field_names(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys onto PartialRecipe field names."""
    by_alias = {to_camel(name): name for name in PartialRecipe.model_fields}
    normalized = {}
    for key, value in changes.items():
        name = by_alias.get(key, key)
        if name not in PartialRecipe.model_fields:
            raise ValueError(f"Unknown recipe field: {key}")
        normalized[name] = value
    return normalized


class RecipeRepository(ABC):
    """Storage for recipes, scoped to an owning user."""

    @abstractmethod
    def create_recipe(self, partial: PartialRecipe, owner_id: str) -> Recipe:
        """Persist a detached recipe and assign its identity."""

    @abstractmethod
    def get_recipe(self, recipe_id: str, owner_id: str) -> Recipe | None:
        """Return the recipe, or None if the owner has no such recipe."""

    @abstractmethod
    def update_recipe(
        self,
        recipe_id: str,
        partial: PartialRecipe | Mapping[str, Any],
        owner_id: str,
    ) -> Recipe:
        """Apply a full (PartialRecipe) or partial (field mapping) edit."""

    @abstractmethod
    def delete_recipe(self, recipe_id: str, owner_id: str) -> None:
        """Delete the recipe."""

    @abstractmethod
    def search_recipes(self, text: str, owner_id: str) -> list[Recipe]:
        """Return the owner's recipes whose title contains the text."""


class InMemoryRecipeRepository(RecipeRepository):
    """Dictionary-backed repository.

    Legacy flat-string ingredients and instructions are normalized to
    sections on every write, since writes go through the pydantic models.
    """

    def __init__(self) -> None:
        self._recipes: dict[str, Recipe] = {}
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()

    def _owned(self, recipe_id: str, owner_id: str) -> Recipe:
        recipe = self._recipes.get(recipe_id)
        if recipe is None or recipe.owner_id != owner_id:
            raise RecipeNotFound(recipe_id)
        return recipe

    def create_recipe(self, partial: PartialRecipe, owner_id: str) -> Recipe:
        recipe = Recipe(
            **partial.model_dump(),
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            created_at=datetime.now(timezone.utc),
        )
        self._recipes[recipe.id] = recipe
        self._sequence[recipe.id] = next(self._counter)
        _LOGGER.info("Created recipe '%s' (%s) for %s", recipe.title, recipe.id, owner_id)
        return recipe

    def get_recipe(self, recipe_id: str, owner_id: str) -> Recipe | None:
        try:
            return self._owned(recipe_id, owner_id)
        except RecipeNotFound:
            return None

    def update_recipe(
        self,
        recipe_id: str,
        partial: PartialRecipe | Mapping[str, Any],
        owner_id: str,
    ) -> Recipe:
        """Update a recipe in place.

        Args:
            recipe_id: Id of the recipe to update
            partial: A PartialRecipe replacing every editable field, or a
                mapping of only the fields to change (camelCase or snake_case)
            owner_id: The owning user

        Returns:
            The updated recipe

        Raises:
            RecipeNotFound: If the owner has no recipe with this id
            ValueError: If the mapping names an unknown field
            pydantic.ValidationError: If the edited recipe is invalid
        """
        existing = self._owned(recipe_id, owner_id)

        if isinstance(partial, PartialRecipe):
            changes = partial.model_dump()
        else:
            changes = _field_names(partial)

        merged = existing.model_dump()
        merged.update(changes)
        for name in _IDENTITY_FIELDS:
            merged[name] = getattr(existing, name)

        recipe = Recipe.model_validate(merged)
        self._recipes[recipe_id] = recipe
        _LOGGER.debug("Updated recipe %s fields: %s", recipe_id, sorted(changes))
        return recipe

    def delete_recipe(self, recipe_id: str, owner_id: str) -> None:
        self._owned(recipe_id, owner_id)
        del self._recipes[recipe_id]
        del self._sequence[recipe_id]
        _LOGGER.info("Deleted recipe %s", recipe_id)

    def search_recipes(self, text: str, owner_id: str) -> list[Recipe]:
        needle = (text or "").strip().lower()
        matches = [
            recipe for recipe in self._recipes.values()
            if recipe.owner_id == owner_id and needle in recipe.title.lower()
        ]
        matches.sort(
            key=lambda recipe: (recipe.created_at, self._sequence[recipe.id]),
            reverse=True,
        )
        return matches
