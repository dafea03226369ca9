"""
Recipe data models for the recipe ingestion package.

This module defines the Pydantic models for structured recipes: sectioned
ingredients and instructions, the detached PartialRecipe produced by the
ingestion pipeline, and the persisted Recipe. Stored recipes may still use
the legacy flat-string shape for ingredients and instructions; both shapes
are normalized to sections once, when a model is built.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)


class IngredientItem(BaseModel):
    """A single ingredient line split into its parts.

    Attributes:
        name: The ingredient name (e.g., 'Flour')
        quantity: Original quantity text (e.g., '1 1/2', '2 to 3', 'a pinch of')
        unit: Canonical unit (e.g., 'Cup', 'tsp')
    """

    model_config = _MODEL_CONFIG

    name: str = Field(
        min_length=1,
        description="The name of the ingredient, e.g., 'Flour'"
    )
    quantity: str | None = Field(
        default=None,
        description="The quantity as written, e.g., '1 1/2'"
    )
    unit: str | None = Field(
        default=None,
        description="The standardized unit, e.g., 'Cup', 'tsp'"
    )


class IngredientSection(BaseModel):
    """A named or unnamed group of ingredients, e.g. 'Filling'."""

    model_config = _MODEL_CONFIG

    section_name: str | None = None
    items: list[IngredientItem] = Field(min_length=1)


class InstructionStep(BaseModel):
    """A single instruction step with an optional illustration."""

    model_config = _MODEL_CONFIG

    text: str = Field(min_length=1)
    image_url: str | None = None


class InstructionSection(BaseModel):
    """A named or unnamed group of instruction steps."""

    model_config = _MODEL_CONFIG

    section_name: str | None = None
    steps: list[InstructionStep] = Field(min_length=1)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_item(item: Any) -> IngredientItem | None:
    """Turn a stored item (model, dict or legacy string) into an item."""
    if isinstance(item, IngredientItem):
        return item
    if isinstance(item, str):
        if not item.strip():
            return None
        # Imported here, the parser module depends on these models
        from ..parsers.ingredient_parser import parse_ingredient_line
        return parse_ingredient_line(item)
    if isinstance(item, dict):
        if _is_blank(item.get("name")):
            return None
        return IngredientItem.model_validate(item)
    raise TypeError(f"Unsupported ingredient item: {item!r}")


def _clean_step(step: Any) -> InstructionStep | None:
    if isinstance(step, InstructionStep):
        return step
    if isinstance(step, str):
        return None if not step.strip() else InstructionStep(text=step)
    if isinstance(step, dict):
        if _is_blank(step.get("text")):
            return None
        return InstructionStep.model_validate(step)
    raise TypeError(f"Unsupported instruction step: {step!r}")


def _section_fields(section: Any, child_key: str) -> tuple[str | None, list[Any]]:
    if isinstance(section, BaseModel):
        return section.section_name, list(getattr(section, child_key))
    name = section.get("sectionName", section.get("section_name"))
    return name, list(section.get(child_key) or [])


def normalize_ingredients(value: Any) -> list[IngredientSection]:
    """Normalize either stored ingredient shape to a list of sections.

    Accepts the legacy flat shape (a list of raw strings, each parsed with
    the ingredient line parser) or the sectioned shape (a list of
    IngredientSection models or dicts). Flat lists of item dicts are
    wrapped into one unsectioned section. Blank items are dropped and
    sections left without items are removed.

    Args:
        value: Stored ingredients in either shape, or None

    Returns:
        List of non-empty IngredientSection objects
    """
    if not value:
        return []
    if isinstance(value, str):
        value = value.splitlines()

    sections: list[IngredientSection] = []
    loose: list[IngredientItem] = []

    for entry in value:
        if isinstance(entry, IngredientSection) or (
            isinstance(entry, dict) and "items" in entry
        ):
            name, raw_items = _section_fields(entry, "items")
            items = [i for i in (_clean_item(r) for r in raw_items) if i is not None]
            if items:
                sections.append(
                    IngredientSection(section_name=name or None, items=items)
                )
            continue

        item = _clean_item(entry)
        if item is not None:
            loose.append(item)

    if loose:
        sections.insert(0, IngredientSection(items=loose))
    return sections


def normalize_instructions(value: Any) -> list[InstructionSection]:
    """Normalize either stored instruction shape to a list of sections."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.splitlines()

    sections: list[InstructionSection] = []
    loose: list[InstructionStep] = []

    for entry in value:
        if isinstance(entry, InstructionSection) or (
            isinstance(entry, dict) and "steps" in entry
        ):
            name, raw_steps = _section_fields(entry, "steps")
            steps = [s for s in (_clean_step(r) for r in raw_steps) if s is not None]
            if steps:
                sections.append(
                    InstructionSection(section_name=name or None, steps=steps)
                )
            continue

        step = _clean_step(entry)
        if step is not None:
            loose.append(step)

    if loose:
        sections.insert(0, InstructionSection(steps=loose))
    return sections


class PartialRecipe(BaseModel):
    """A recipe without identity, as produced by the ingestion pipeline.

    Attributes:
        title: The recipe title
        description: Short description or summary
        cook_time: Human-readable duration (e.g., '1h 30m', '45 min')
        servings: Number of servings, a positive integer
        category: Recipe category (e.g., 'Dessert')
        difficulty: Free-form difficulty label
        rating: Rating from 0 to 5
        image_url: Main recipe image
        video_url: Recipe video (YouTube, Vimeo, direct file)
        source_url: Page the recipe was imported from
        ingredients: Sectioned ingredients
        instructions: Sectioned instruction steps
        is_favorite: Whether the user marked the recipe as favorite
    """

    model_config = _MODEL_CONFIG

    title: str = Field(min_length=1)
    description: str | None = None
    cook_time: str | None = None
    servings: int | None = Field(default=None, ge=1)
    category: str | None = None
    difficulty: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    image_url: str | None = None
    video_url: str | None = None
    source_url: str | None = None
    ingredients: list[IngredientSection] = Field(default_factory=list)
    instructions: list[InstructionSection] = Field(default_factory=list)
    is_favorite: bool = False

    @field_validator("ingredients", mode="before")
    @classmethod
    def _normalize_ingredients(cls, value: Any) -> list[IngredientSection]:
        return normalize_ingredients(value)

    @field_validator("instructions", mode="before")
    @classmethod
    def _normalize_instructions(cls, value: Any) -> list[InstructionSection]:
        return normalize_instructions(value)

    def ingredient_count(self) -> int:
        return sum(len(section.items) for section in self.ingredients)

    def step_count(self) -> int:
        return sum(len(section.steps) for section in self.instructions)

    def to_json(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Recipe(PartialRecipe):
    """A persisted recipe owned by a single user."""

    id: str
    owner_id: str
    created_at: datetime
