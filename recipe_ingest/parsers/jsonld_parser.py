"""
JSON-LD Recipe Parser.

This module handles parsing of structured recipe data embedded as
Schema.org JSON-LD, including recipes nested in @graph arrays and
instructions grouped into HowToSection objects.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from bs4 import BeautifulSoup

from ..const import DEFAULT_SERVINGS, DEFAULT_TITLE, EVENT_STRATEGY_MATCHED, PLACEHOLDER_INSTRUCTION
from ..models.recipe import (
    IngredientSection,
    InstructionSection,
    InstructionStep,
    PartialRecipe,
)
from . import media
from .base_parser import BaseRecipeParser
from .ingredient_parser import parse_ingredient_line
from .text_filters import (
    clean_structured_ingredients,
    clean_text,
    find_servings,
    format_duration,
    parse_servings,
    split_list_text,
)

_LOGGER = logging.getLogger(__name__)

_NESTED_KEYS = ("@graph", "mainEntity")


def is_recipe(item: Any) -> bool:
    """Check if a JSON-LD item represents a Recipe."""
    if not isinstance(item, dict):
        return False
    item_type = item.get("@type")
    if isinstance(item_type, str):
        return item_type == "Recipe"
    if isinstance(item_type, list):
        return "Recipe" in item_type
    return False


def find_recipe_object(data: Any) -> dict[str, Any] | None:
    """Depth-first search for the first Recipe object in decoded JSON-LD."""
    if isinstance(data, list):
        for item in data:
            found = find_recipe_object(item)
            if found is not None:
                return found
        return None

    if not isinstance(data, dict):
        return None
    if is_recipe(data):
        return data
    for key in _NESTED_KEYS:
        if key in data:
            found = find_recipe_object(data[key])
            if found is not None:
                return found
    return None


def _entry_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        value = entry.get("text") or entry.get("name") or ""
        return value if isinstance(value, str) else str(value)
    return "" if entry is None else str(entry)


class JSONLDRecipeParser(BaseRecipeParser):
    """Parses recipe data from embedded JSON-LD structured data.

    This extractor handles pre-structured recipe data that follows the
    Schema.org Recipe vocabulary. It returns None when the document has no
    Recipe object, leaving the page to the heuristic extractor.
    """

    def find_recipe_data(self, soup: BeautifulSoup) -> dict[str, Any] | None:
        """Locate the first Recipe object among the document's JSON-LD blocks."""
        scripts = soup.find_all("script", type="application/ld+json")
        _LOGGER.debug("Found %d JSON-LD scripts", len(scripts))

        for index, script in enumerate(scripts):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw, strict=False)
            except (json.JSONDecodeError, ValueError) as err:
                _LOGGER.debug("Skipping unparseable JSON-LD script %d: %s", index, err)
                continue

            recipe = find_recipe_object(data)
            if recipe is not None:
                _LOGGER.debug("Found recipe data in JSON-LD script %d", index)
                self._emit(EVENT_STRATEGY_MATCHED, {
                    "field": "recipe",
                    "strategy": f"json-ld script {index}",
                    "count": 1,
                })
                return recipe

        return None

    def _parse_ingredients(self, raw: Any) -> list[IngredientSection]:
        """Route recipeIngredient entries through the ingredient line parser."""
        if raw is None:
            return []
        entries = raw if isinstance(raw, list) else [raw]
        lines = [_entry_text(entry).strip() for entry in entries]
        lines = [line for line in lines if line]

        if len(lines) == 1 and "\n" in lines[0]:
            lines = lines[0].split("\n")

        split_lines: list[str] = []
        for line in lines:
            split_lines.extend(split_list_text(line, split_on_spaces=False))

        cleaned = clean_structured_ingredients(split_lines)
        _LOGGER.debug("JSON-LD ingredients: %d raw, %d after cleaning",
                      len(split_lines), len(cleaned))
        if not cleaned:
            return []
        return [IngredientSection(items=[parse_ingredient_line(line) for line in cleaned])]

    def _parse_instruction_groups(self, raw: Any) -> list[tuple[str | None, list[str]]]:
        """Turn recipeInstructions into (section name, step texts) groups."""
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = raw.split("\n")
        elif isinstance(raw, dict):
            raw = [raw]
        if not isinstance(raw, list):
            return []

        groups: list[tuple[str | None, list[str]]] = []
        for entry in raw:
            if isinstance(entry, dict) and (
                entry.get("@type") == "HowToSection" or "itemListElement" in entry
            ):
                children = entry.get("itemListElement") or []
                if not isinstance(children, list):
                    children = [children]
                steps = [_entry_text(child) for child in children]
                name = entry.get("name") if isinstance(entry.get("name"), str) else None
                groups.append((clean_text(name) or None, steps))
            else:
                groups.append((None, [_entry_text(entry)]))

        if len(groups) > 1 and all(len(steps) == 1 and name is None for name, steps in groups):
            groups = [(None, [steps[0] for _, steps in groups])]

        seen: set[str] = set()
        result: list[tuple[str | None, list[str]]] = []
        for name, steps in groups:
            unique = []
            for step in steps:
                text = clean_text(step)
                if not text or text in seen:
                    continue
                seen.add(text)
                unique.append(text)
            if unique:
                result.append((name, unique))
        return result

    def _parse_instructions(self, raw: Any) -> list[InstructionSection]:
        groups = self._parse_instruction_groups(raw)
        if not groups:
            _LOGGER.warning("No instructions in JSON-LD data, using placeholder")
            return [InstructionSection(steps=[InstructionStep(text=PLACEHOLDER_INSTRUCTION)])]
        return [
            InstructionSection(
                section_name=name,
                steps=[InstructionStep(text=text) for text in steps],
            )
            for name, steps in groups
        ]

    @staticmethod
    def _parse_category(category: Any) -> str | None:
        if isinstance(category, list):
            category = category[0] if category else None
        if isinstance(category, str) and category.strip():
            return clean_text(category)
        return None

    def parse_recipe_data(
        self, data: dict[str, Any], soup: BeautifulSoup | None = None, url: str | None = None
    ) -> PartialRecipe:
        """Build a PartialRecipe from a decoded Recipe object.

        Args:
            data: The JSON-LD Recipe object
            soup: The document, used for the image fallback
            url: The page URL, used to resolve relative image links

        Returns:
            PartialRecipe with unsectioned ingredients and, unless the data
            uses HowToSection groups, unsectioned instructions
        """
        title = clean_text(data.get("name")) or DEFAULT_TITLE
        description = clean_text(data.get("description")) or None
        ingredients = self._parse_ingredients(data.get("recipeIngredient"))
        instructions = self._parse_instructions(data.get("recipeInstructions"))

        servings = parse_servings(data.get("recipeYield"))
        if servings == DEFAULT_SERVINGS:
            step_text = " ".join(
                step.text for section in instructions for step in section.steps
            )
            found = find_servings(" ".join(filter(None, [description, step_text, title])))
            if found:
                _LOGGER.debug("Servings inferred from text: %d", found)
                servings = found

        image_url = media.pick_jsonld_image(data.get("image"))
        if image_url is None and soup is not None:
            image_url = media.find_image(soup, url)
        elif image_url and url:
            image_url = media.normalize_media_url(image_url, url)

        return PartialRecipe(
            title=title,
            description=description,
            cook_time=(
                format_duration(data.get("cookTime"))
                or format_duration(data.get("totalTime"))
            ),
            servings=servings,
            category=self._parse_category(data.get("recipeCategory")),
            image_url=image_url,
            video_url=media.pick_jsonld_video(data.get("video")),
            ingredients=ingredients,
            instructions=instructions,
        )

    def parse(self, soup: BeautifulSoup, url: str | None = None) -> PartialRecipe | None:
        """Extract a recipe from the document's JSON-LD, or None if absent."""
        data = self.find_recipe_data(soup)
        if data is None:
            return None
        return self.parse_recipe_data(data, soup, url)
