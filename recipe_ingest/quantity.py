"""
Quantity parsing, scaling and formatting for recipe ingredients.

Quantities are held as exact fractions.Fraction values so that scaling
"1/3" by 3 gives exactly 1. A range ("2 to 3", "1-2", "1 or 2") is a
QuantityRange whose bounds scale independently. Descriptive quantities
such as "a pinch of" carry no numeric value and are never converted.
"""
from __future__ import annotations

import math
import re
from fractions import Fraction
from typing import NamedTuple, Union

from .const import (
    DEFAULT_FRACTION_TOLERANCE,
    DEFAULT_MIN_DISPLAY_VALUE,
    MAX_FRACTION_DENOMINATOR,
)
from .exceptions import UnparseableQuantity

# Unicode vulgar fractions and their exact values
UNICODE_FRACTIONS: dict[str, Fraction] = {
    "¼": Fraction(1, 4),
    "½": Fraction(1, 2),
    "¾": Fraction(3, 4),
    "⅓": Fraction(1, 3),
    "⅔": Fraction(2, 3),
    "⅛": Fraction(1, 8),
    "⅜": Fraction(3, 8),
    "⅝": Fraction(5, 8),
    "⅞": Fraction(7, 8),
    "⅙": Fraction(1, 6),
    "⅚": Fraction(5, 6),
}
FRACTION_GLYPHS = "".join(UNICODE_FRACTIONS)

# Glyphs in ascending order of value, used when rendering
_GLYPHS_BY_VALUE = sorted(
    ((value, glyph) for glyph, value in UNICODE_FRACTIONS.items()),
    key=lambda pair: pair[0],
)

DESCRIPTIVE_QUANTITY_PATTERN = (
    r"(?:a|an|one)\s+(?:small\s+|large\s+|generous\s+|big\s+)?"
    r"(?:pinch|dash|handful|splash|sprinkle|drizzle|knob|squeeze|few|couple|little|bit)"
    r"(?:\s+of)?"
)
_DESCRIPTIVE_RE = re.compile(rf"^{DESCRIPTIVE_QUANTITY_PATTERN}$", re.IGNORECASE)

_MIXED_UNICODE_RE = re.compile(rf"^(\d+)\s*([{FRACTION_GLYPHS}])$")
_MIXED_ASCII_RE = re.compile(r"^(\d+)\s+(\d+)\s*/\s*(\d+)$")
_SIMPLE_FRACTION_RE = re.compile(r"^(\d+)\s*/\s*(\d+)$")
_GLYPH_RE = re.compile(rf"^([{FRACTION_GLYPHS}])$")
_DECIMAL_RE = re.compile(r"^(?:\d+(?:\.\d+)?|\.\d+)$")
_RANGE_RE = re.compile(
    r"^(?P<low>.+?)(?:\s*(?P<dash>[-–—])\s*|\s+(?:to|or)\s+)(?P<high>.+)$", re.IGNORECASE
)


class QuantityRange(NamedTuple):
    """A quantity given as a low/high pair, e.g. "2 to 3"."""

    low: Fraction
    high: Fraction


Quantity = Union[Fraction, QuantityRange]


def _normalize_token(token: str) -> str:
    text = token.strip().replace("⁄", "/")
    return re.sub(r"\s+", " ", text)


def is_descriptive_quantity(token: str) -> bool:
    """Return True for non-numeric amounts such as "a pinch of"."""
    return bool(_DESCRIPTIVE_RE.match(_normalize_token(token)))


def _parse_single(text: str) -> Fraction:
    """Parse one non-range quantity, trying the forms in priority order."""
    match = _MIXED_UNICODE_RE.match(text)
    if match:
        return int(match.group(1)) + UNICODE_FRACTIONS[match.group(2)]

    match = _MIXED_ASCII_RE.match(text)
    if match:
        whole, numerator, denominator = (int(g) for g in match.groups())
        if denominator == 0:
            raise UnparseableQuantity(text)
        return whole + Fraction(numerator, denominator)

    match = _SIMPLE_FRACTION_RE.match(text)
    if match:
        numerator, denominator = (int(g) for g in match.groups())
        if denominator == 0:
            raise UnparseableQuantity(text)
        return Fraction(numerator, denominator)

    match = _GLYPH_RE.match(text)
    if match:
        return UNICODE_FRACTIONS[match.group(1)]

    if _DECIMAL_RE.match(text):
        return Fraction(text)

    raise UnparseableQuantity(text)


def parse_quantity(token: str) -> Quantity:
    """Parse a quantity token into an exact value or a range.

    Recognized forms, in priority order: ranges ("X to Y", "X-Y", "X or Y"),
    whole number plus glyph ("1½", "1 ½"), mixed fraction ("1 1/2"), simple
    fraction ("1/2"), bare glyph ("¾"), and decimal or integer ("1.5").
    A whole number hyphenated to a proper fraction ("1-1/2") is read as a
    mixed number, and a range whose low bound exceeds its high is rejected.

    Args:
        token: Quantity text such as "1 1/2" or "2 to 3"

    Returns:
        A Fraction, or a QuantityRange for range forms

    Raises:
        UnparseableQuantity: If the token matches no numeric form, including
            descriptive quantities like "a pinch of"
    """
    if token is None:
        raise UnparseableQuantity("")
    text = _normalize_token(str(token))
    if not text:
        raise UnparseableQuantity(token)

    match = _RANGE_RE.match(text)
    if match:
        try:
            low = _parse_single(match.group("low").strip())
            high = _parse_single(match.group("high").strip())
        except UnparseableQuantity:
            pass
        else:
            # "1-1/2" is a hyphenated mixed number, not a range down to 1/2
            if (
                match.group("dash")
                and low.denominator == 1
                and low >= 1
                and 0 < high < 1
            ):
                return low + high
            if low > high:
                raise UnparseableQuantity(token)
            return QuantityRange(low, high)

    return _parse_single(text)


def to_fraction(multiplier: float | int | Fraction) -> Fraction:
    """Exact fraction for a number; floats go through their shortest repr."""
    if isinstance(multiplier, Fraction):
        return multiplier
    if isinstance(multiplier, float):
        # repr() keeps 0.1 as 1/10 rather than its binary expansion
        return Fraction(repr(multiplier))
    return Fraction(multiplier)


def scale_quantity(value: Quantity, multiplier: float | int | Fraction) -> Quantity:
    """Multiply a quantity, scaling both bounds of a range.

    Raises:
        ValueError: If the multiplier is not positive
    """
    factor = to_fraction(multiplier)
    if factor <= 0:
        raise ValueError(f"Multiplier must be positive, got {multiplier}")

    if isinstance(value, QuantityRange):
        return QuantityRange(value.low * factor, value.high * factor)
    return value * factor


def format_decimal(quantity: float | int | None) -> str:
    """
    Format quantity to remove unnecessary decimals.

    Args:
        quantity: The numeric quantity (can be int, float, or None)

    Returns:
        Formatted string (empty string if quantity is None)

    Examples:
        >>> format_decimal(2.0)
        '2'
        >>> format_decimal(2.5)
        '2.5'
        >>> format_decimal(2.125)
        '2.13'
    """
    if quantity is None:
        return ""

    if quantity == int(quantity):
        return str(int(quantity))

    return f"{quantity:.2f}".rstrip('0').rstrip('.')


def _join(whole: int, fraction_text: str) -> str:
    return f"{whole} {fraction_text}" if whole else fraction_text


def format_value(
    value: Fraction,
    tolerance: float = DEFAULT_FRACTION_TOLERANCE,
    min_display: float = DEFAULT_MIN_DISPLAY_VALUE,
) -> str:
    """Render a single value in the closest human-friendly notation.

    The fractional remainder is matched against the common glyph fractions
    first, then against the smallest denominator up to 16 that lands within
    tolerance, and otherwise rendered as a decimal truncated to two places.

    Examples:
        >>> format_value(Fraction(3, 2))
        '1 ½'
        >>> format_value(Fraction(2, 5))
        '2/5'
        >>> format_value(Fraction(3))
        '3'
    """
    value = Fraction(value)
    tol = to_fraction(tolerance)

    if value < to_fraction(min_display):
        return "0"

    whole = math.floor(value)
    remainder = value - whole

    if remainder <= tol:
        return str(whole)
    if 1 - remainder <= tol:
        return str(whole + 1)

    for glyph_value, glyph in _GLYPHS_BY_VALUE:
        if abs(remainder - glyph_value) <= tol:
            return _join(whole, glyph)

    for denominator in range(2, MAX_FRACTION_DENOMINATOR + 1):
        numerator = round(remainder * denominator)
        if numerator == 0 or numerator == denominator:
            continue
        candidate = Fraction(numerator, denominator)
        if abs(remainder - candidate) <= tol:
            return _join(whole, f"{candidate.numerator}/{candidate.denominator}")

    truncated = Fraction(math.floor(value * 100), 100)
    return format_decimal(float(truncated))


def format_quantity(
    value: Quantity | str,
    tolerance: float = DEFAULT_FRACTION_TOLERANCE,
    min_display: float = DEFAULT_MIN_DISPLAY_VALUE,
) -> str:
    """Render a value or range; text quantities pass through unchanged."""
    if isinstance(value, str):
        return value
    if isinstance(value, QuantityRange):
        low = format_value(value.low, tolerance, min_display)
        high = format_value(value.high, tolerance, min_display)
        return f"{low} to {high}"
    return format_value(value, tolerance, min_display)


def scale_quantity_text(
    token: str,
    multiplier: float | int | Fraction,
    tolerance: float = DEFAULT_FRACTION_TOLERANCE,
    min_display: float = DEFAULT_MIN_DISPLAY_VALUE,
) -> str:
    """Parse, scale and re-render a quantity string.

    Tokens that are not numeric ("a pinch of", "as needed") are returned
    unchanged so ingredient text is never dropped.
    """
    try:
        value = parse_quantity(token)
    except UnparseableQuantity:
        return token.strip()
    return format_quantity(scale_quantity(value, multiplier), tolerance, min_display)


# Volume conversions to milliliters (ml)
VOLUME_TO_ML = {
    "cup": 240,
    "cups": 240,
    "c": 240,
    "fluid ounce": 30,
    "fluid ounces": 30,
    "fl oz": 30,
    "fl. oz": 30,
    "pint": 473,
    "pints": 473,
    "pt": 473,
    "quart": 946,
    "quarts": 946,
    "qt": 946,
    "gallon": 3785,
    "gallons": 3785,
    "gal": 3785,
    "milliliter": 1,
    "milliliters": 1,
    "ml": 1,
    "liter": 1000,
    "liters": 1000,
    "l": 1000,
}

# Weight conversions to grams (g)
WEIGHT_TO_G = {
    "ounce": 28.35,
    "ounces": 28.35,
    "oz": 28.35,
    "pound": 453.592,
    "pounds": 453.592,
    "lb": 453.592,
    "lbs": 453.592,
    "gram": 1,
    "grams": 1,
    "g": 1,
    "kilogram": 1000,
    "kilograms": 1000,
    "kg": 1000,
}

TEMPERATURE_UNITS = {
    "fahrenheit": "f",
    "f": "f",
    "°f": "f",
}

# Spoon measures are kept as they are
SPOON_UNITS = frozenset(
    {"tsp", "teaspoon", "teaspoons", "tbsp", "tablespoon", "tablespoons", "pinch", "dash"}
)


def convert_to_metric(quantity: float, unit: str) -> tuple[float | int, str]:
    """
    Convert imperial units to metric equivalents.

    Args:
        quantity: The numeric quantity
        unit: The unit string (e.g., 'Cup', 'oz', 'lb', '°F')

    Returns:
        Tuple of (converted_quantity, metric_unit)
        If no conversion applies, returns the original values

    Examples:
        >>> convert_to_metric(1, 'Cup')
        (240, 'ml')
        >>> convert_to_metric(1, 'lb')
        (454.0, 'g')
        >>> convert_to_metric(2, 'Tbsp')
        (2, 'Tbsp')
    """
    if not quantity or not unit:
        return quantity, unit

    unit_lower = unit.lower().strip()

    if unit_lower in SPOON_UNITS:
        return quantity, unit

    if unit_lower in VOLUME_TO_ML:
        ml = quantity * VOLUME_TO_ML[unit_lower]
        if ml >= 1000:
            return round(ml / 1000, 2), "l"
        return round(ml, 0), "ml"

    if unit_lower in WEIGHT_TO_G:
        grams = quantity * WEIGHT_TO_G[unit_lower]
        if grams >= 1000:
            return round(grams / 1000, 2), "kg"
        return round(grams, 0), "g"

    if unit_lower in TEMPERATURE_UNITS:
        celsius = (quantity - 32) * 5 / 9
        return round(celsius, 0), "°C"

    return quantity, unit
