"""
Recipe Ingest.

Turns recipe web pages into structured recipes with sectioned ingredients
and instructions, using JSON-LD structured data when a page carries it and
a cascade of page heuristics when it does not. Also scales stored
ingredients to a chosen portion with exact fraction arithmetic.
"""
from __future__ import annotations

from .config import IngestConfig, load_config
from .exceptions import (
    InvalidRequest,
    RecipeIngestError,
    RecipeNotFound,
    ScrapeFailed,
    UnparseableQuantity,
)
from .models.recipe import (
    IngredientItem,
    IngredientSection,
    InstructionSection,
    InstructionStep,
    PartialRecipe,
    Recipe,
)
from .parsers.ingredient_parser import parse_ingredient_line
from .quantity import format_quantity, parse_quantity, scale_quantity
from .services.portion_scaler import scale_ingredients, scale_sections
from .services.recipe_service import RecipeIngestionPipeline

__all__ = [
    "IngestConfig",
    "IngredientItem",
    "IngredientSection",
    "InstructionSection",
    "InstructionStep",
    "InvalidRequest",
    "PartialRecipe",
    "Recipe",
    "RecipeIngestError",
    "RecipeIngestionPipeline",
    "RecipeNotFound",
    "ScrapeFailed",
    "UnparseableQuantity",
    "format_quantity",
    "load_config",
    "parse_ingredient_line",
    "parse_quantity",
    "scale_ingredients",
    "scale_quantity",
    "scale_sections",
]
