"""
Portion Scaler.

This module renders a stored recipe's ingredients at a chosen portion
multiplier for display. Both stored shapes are accepted: legacy flat
strings are parsed with the ingredient line parser first, so legacy and
sectioned recipes scale identically. Optionally converts imperial units to
metric after scaling.
"""
from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, NamedTuple

from ..config import IngestConfig
from ..exceptions import UnparseableQuantity
from ..models.recipe import IngredientItem, normalize_ingredients
from ..quantity import (
    QuantityRange,
    convert_to_metric,
    format_decimal,
    format_quantity,
    parse_quantity,
    scale_quantity,
    to_fraction,
)

_LOGGER = logging.getLogger(__name__)


class ScaledSection(NamedTuple):
    """Rendered ingredient lines of one section."""

    section_name: str | None
    lines: list[str]

    def to_json(self) -> dict[str, Any]:
        return {"sectionName": self.section_name, "lines": list(self.lines)}


def _display_name(name: str) -> str:
    """Lower-case the leading letter for use after a quantity ("1 Cup flour").

    Acronyms such as "BBQ sauce" keep their case.
    """
    first_word = name.split(" ", 1)[0]
    if len(first_word) > 1 and first_word.isupper():
        return name
    return name[:1].lower() + name[1:]


def render_item(
    item: IngredientItem,
    multiplier: float | Fraction,
    config: IngestConfig,
    convert_units: bool = False,
) -> str:
    """Render one ingredient at the given multiplier.

    Items without a quantity render as their name. Quantities that are not
    numeric ("a pinch of", "as needed") are kept as written.
    """
    if not item.quantity:
        return item.name

    unit = item.unit
    try:
        value = parse_quantity(item.quantity)
    except UnparseableQuantity:
        _LOGGER.debug("Keeping non-numeric quantity %r for %s", item.quantity, item.name)
        quantity_text = item.quantity
    else:
        scaled = scale_quantity(value, multiplier)
        quantity_text = format_quantity(
            scaled, config.fraction_tolerance, config.min_display_value
        )
        if convert_units and unit and not isinstance(scaled, QuantityRange):
            metric_quantity, metric_unit = convert_to_metric(float(scaled), unit)
            if metric_unit != unit:
                _LOGGER.debug("Converted units for %s: %s %s -> %s %s",
                              item.name, quantity_text, unit, metric_quantity, metric_unit)
                quantity_text = format_decimal(metric_quantity)
                unit = metric_unit

    parts = [quantity_text]
    if unit:
        parts.append(unit)
    parts.append(_display_name(item.name))
    return " ".join(parts)


def scale_sections(
    ingredients: Any,
    multiplier: float | Fraction,
    config: IngestConfig | None = None,
    convert_units: bool | None = None,
) -> list[ScaledSection]:
    """Scale ingredients in either stored shape, keeping section names.

    Args:
        ingredients: Sectioned ingredients or a legacy list of strings
        multiplier: Portion multiplier, must be positive
        config: Formatting tolerances and the unit conversion default
        convert_units: Convert to metric; defaults to the config setting

    Returns:
        One ScaledSection per ingredient section

    Raises:
        ValueError: If the multiplier is not positive
    """
    config = config or IngestConfig()
    if convert_units is None:
        convert_units = config.convert_units
    factor = to_fraction(multiplier)
    if factor <= 0:
        raise ValueError(f"Multiplier must be positive, got {multiplier}")

    sections = normalize_ingredients(ingredients)
    _LOGGER.debug("Scaling %d ingredient sections by %s", len(sections), multiplier)

    return [
        ScaledSection(
            section.section_name,
            [render_item(item, factor, config, convert_units) for item in section.items],
        )
        for section in sections
    ]


def scale_ingredients(
    ingredients: Any,
    multiplier: float | Fraction,
    config: IngestConfig | None = None,
    convert_units: bool | None = None,
) -> list[str]:
    """Scale ingredients and return the rendered lines of all sections in order.

    Examples:
        >>> scale_ingredients(["2 cups flour"], 0.5)
        ['1 Cup flour']
    """
    return [
        line
        for section in scale_sections(ingredients, multiplier, config, convert_units)
        for line in section.lines
    ]


def scale_for_servings(
    ingredients: Any,
    original_servings: int | float | None,
    target_servings: int | float | None,
    config: IngestConfig | None = None,
    convert_units: bool | None = None,
) -> list[ScaledSection]:
    """Scale ingredients from the recipe's serving count to a target count.

    Missing or non-positive serving counts leave quantities unscaled.
    """
    multiplier: Fraction = Fraction(1)
    if original_servings is None or original_servings <= 0:
        _LOGGER.warning(
            "Cannot scale recipe: original servings not available or invalid")
    elif target_servings is None or target_servings <= 0:
        _LOGGER.warning(
            "Cannot scale recipe: target servings must be positive")
    else:
        multiplier = to_fraction(target_servings) / to_fraction(original_servings)
        _LOGGER.info("Scaling ingredients from %s to %s servings (factor: %.2f)",
                     original_servings, target_servings, float(multiplier))

    return scale_sections(ingredients, multiplier, config, convert_units)
