"""
Ingredient line parser.

Splits a raw ingredient line such as "1 1/2 cups all-purpose flour" into
quantity, unit and name. Patterns are tried in priority order and the first
match wins; a line that matches nothing becomes the name on its own, so
ingredient text is never discarded.
"""
from __future__ import annotations

import logging
import re

from ..exceptions import UnparseableQuantity
from ..models.recipe import IngredientItem
from ..quantity import (
    DESCRIPTIVE_QUANTITY_PATTERN,
    FRACTION_GLYPHS,
    parse_quantity,
)

_LOGGER = logging.getLogger(__name__)

# Spelling variants (lower-case) mapped to the canonical unit
UNIT_ALIASES: dict[str, str] = {
    "c": "Cup",
    "cup": "Cup",
    "cups": "Cup",
    "tbsp": "Tbsp",
    "tbsps": "Tbsp",
    "tbs": "Tbsp",
    "tbl": "Tbsp",
    "tablespoon": "Tbsp",
    "tablespoons": "Tbsp",
    "tsp": "tsp",
    "tsps": "tsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "oz": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "fl oz": "fl oz",
    "fl. oz": "fl oz",
    "fluid ounce": "fl oz",
    "fluid ounces": "fl oz",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "g": "g",
    "gram": "g",
    "grams": "g",
    "kg": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "l": "L",
    "liter": "L",
    "liters": "L",
    "litre": "L",
    "litres": "L",
    "pint": "pint",
    "pints": "pint",
    "quart": "quart",
    "quarts": "quart",
    "gallon": "gallon",
    "gallons": "gallon",
    "clove": "clove",
    "cloves": "clove",
    "piece": "piece",
    "pieces": "piece",
    "slice": "slice",
    "slices": "slice",
    "strip": "strip",
    "strips": "strip",
    "sprig": "sprig",
    "sprigs": "sprig",
    "stick": "stick",
    "sticks": "stick",
    "bottle": "bottle",
    "bottles": "bottle",
    "can": "can",
    "cans": "can",
    "jar": "jar",
    "jars": "jar",
    "package": "package",
    "packages": "package",
    "pkg": "package",
    "pinch": "pinch",
    "pinches": "pinch",
    "dash": "dash",
    "dashes": "dash",
    "bag": "bag",
    "bags": "bag",
    "box": "box",
    "boxes": "box",
    "head": "head",
    "heads": "head",
    "bunch": "bunch",
    "bunches": "bunch",
    "stalk": "stalk",
    "stalks": "stalk",
}

# Single-letter abbreviations where case carries meaning
CASE_SENSITIVE_UNITS = {"T": "Tbsp", "t": "tsp"}


def standardize_unit(unit: str) -> str:
    """Collapse spelling variants of a unit to its canonical form.

    The table is advisory: unknown units are returned unchanged (trimmed)
    and never cause the ingredient to be rejected. Applying the function to
    its own output returns the same value.

    Examples:
        >>> standardize_unit("cups")
        'Cup'
        >>> standardize_unit("T")
        'Tbsp'
        >>> standardize_unit("knob")
        'knob'
    """
    if unit is None:
        return unit
    text = unit.strip()
    abbreviation = text.rstrip(".")
    if abbreviation in CASE_SENSITIVE_UNITS:
        return CASE_SENSITIVE_UNITS[abbreviation]

    key = re.sub(r"\s+", " ", text.lower()).rstrip(".")
    return UNIT_ALIASES.get(key, text)


_UNIT_NAMES = sorted(set(UNIT_ALIASES), key=len, reverse=True)
_UNIT_PATTERN = "|".join(re.escape(name).replace(r"\ ", r"\s+") for name in _UNIT_NAMES)

_NUMBER = r"(?:\d+(?:\.\d+)?|\.\d+)"
_SINGLE_QTY = (
    rf"(?:\d+\s+\d+\s*[/⁄]\s*\d+"
    rf"|\d+\s*[{FRACTION_GLYPHS}]"
    rf"|\d+\s*[/⁄]\s*\d+"
    rf"|[{FRACTION_GLYPHS}]"
    rf"|{_NUMBER})"
)
_RANGE_QTY = rf"{_SINGLE_QTY}(?:\s*[-–—]\s*|\s+(?:to|or)\s+){_SINGLE_QTY}"
_UNIT = rf"(?:{_UNIT_PATTERN}|T|t)\.?(?=\s|$)"

# Ordered patterns; the first that matches and validates wins
_LINE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "range_unit_name",
        re.compile(
            rf"^(?P<quantity>{_RANGE_QTY})\s*(?P<unit>{_UNIT})\s+(?P<name>.+)$",
            re.IGNORECASE,
        ),
    ),
    (
        "quantity_unit_name",
        re.compile(
            rf"^(?P<quantity>{_SINGLE_QTY})\s*(?P<unit>{_UNIT})\s+(?P<name>.+)$",
            re.IGNORECASE,
        ),
    ),
    (
        "quantity_name",
        re.compile(
            rf"^(?P<quantity>{_RANGE_QTY}|{_SINGLE_QTY})\s+(?P<name>.+)$",
            re.IGNORECASE,
        ),
    ),
    (
        "descriptive_name",
        re.compile(
            rf"^(?P<quantity>{DESCRIPTIVE_QUANTITY_PATTERN})\s+(?P<name>.+)$",
            re.IGNORECASE,
        ),
    ),
)


def capitalize_first(text: str) -> str:
    """Upper-case the first character, leaving the rest untouched."""
    return text[:1].upper() + text[1:] if text else text


def _is_numeric(quantity: str) -> bool:
    try:
        parse_quantity(quantity)
    except UnparseableQuantity:
        return False
    return True


def parse_ingredient_line(raw: str) -> IngredientItem:
    """Parse a raw ingredient line into an IngredientItem.

    Args:
        raw: Ingredient text, e.g. "2 to 3 tbsp olive oil"

    Returns:
        IngredientItem with the quantity as written, a standardized unit and
        a capitalized name. Lines matching no pattern keep their full text
        as the name.

    Raises:
        ValueError: If the line is empty or whitespace only
    """
    if raw is None or not raw.strip():
        raise ValueError("Ingredient line cannot be empty")

    text = re.sub(r"\s+", " ", raw.strip())

    for pattern_name, pattern in _LINE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue

        quantity = match.group("quantity").strip()
        name = match.group("name").strip()
        unit = match.groupdict().get("unit")

        if pattern_name != "descriptive_name" and not _is_numeric(quantity):
            _LOGGER.debug("Pattern %s matched %r but quantity %r is invalid",
                          pattern_name, text, quantity)
            continue

        _LOGGER.debug("Pattern %s matched %r", pattern_name, text)
        return IngredientItem(
            name=capitalize_first(name),
            quantity=quantity,
            unit=standardize_unit(unit) if unit else None,
        )

    return IngredientItem(name=capitalize_first(text))
