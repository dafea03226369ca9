from fractions import Fraction

import pytest

from recipe_ingest.exceptions import UnparseableQuantity
from recipe_ingest.quantity import (
    QuantityRange,
    convert_to_metric,
    format_decimal,
    format_quantity,
    format_value,
    is_descriptive_quantity,
    parse_quantity,
    scale_quantity,
    scale_quantity_text,
)


@pytest.mark.parametrize(
    "token, expected",
    [
        ("2", Fraction(2)),
        ("1.5", Fraction(3, 2)),
        (".25", Fraction(1, 4)),
        ("1/2", Fraction(1, 2)),
        ("1 1/2", Fraction(3, 2)),
        ("1⁄3", Fraction(1, 3)),
        ("¾", Fraction(3, 4)),
        ("1½", Fraction(3, 2)),
        ("2 ¼", Fraction(9, 4)),
        ("  3  ", Fraction(3)),
    ],
)
def test_parse_single_values(token, expected):
    assert parse_quantity(token) == expected


@pytest.mark.parametrize(
    "token, low, high",
    [
        ("2 to 3", Fraction(2), Fraction(3)),
        ("1-2", Fraction(1), Fraction(2)),
        ("1–2", Fraction(1), Fraction(2)),
        ("1 or 2", Fraction(1), Fraction(2)),
        ("1/2 - 3/4", Fraction(1, 2), Fraction(3, 4)),
        ("1 1/2 to 2", Fraction(3, 2), Fraction(2)),
    ],
)
def test_parse_ranges(token, low, high):
    assert parse_quantity(token) == QuantityRange(low, high)


@pytest.mark.parametrize(
    "token, expected",
    [
        ("1-1/2", Fraction(3, 2)),
        ("2-1/2", Fraction(5, 2)),
        ("1–½", Fraction(3, 2)),
        ("3 - 3/4", Fraction(15, 4)),
    ],
)
def test_hyphenated_mixed_numbers(token, expected):
    value = parse_quantity(token)
    assert not isinstance(value, QuantityRange)
    assert value == expected


@pytest.mark.parametrize("token", ["3-1", "2 to 1", "1 1/2 - 1"])
def test_descending_ranges_are_rejected(token):
    with pytest.raises(UnparseableQuantity):
        parse_quantity(token)


@pytest.mark.parametrize("token", ["", "   ", "a pinch of", "some", "1/0", "salt or pepper"])
def test_unparseable_tokens(token):
    with pytest.raises(UnparseableQuantity):
        parse_quantity(token)


def test_unparseable_is_value_error():
    with pytest.raises(ValueError):
        parse_quantity("lots")


def test_descriptive_quantities():
    assert is_descriptive_quantity("a pinch of")
    assert is_descriptive_quantity("A small handful of")
    assert not is_descriptive_quantity("2 cups")


@pytest.mark.parametrize(
    "token, multiplier, expected",
    [
        ("1/2", 1, "½"),
        ("¾", 1, "¾"),
        ("1 1/2", 2, "3"),
        ("1/3", 3, "1"),
        ("1 to 2", 2, "2 to 4"),
        ("2", 0.5, "1"),
        ("1", 0.25, "¼"),
        ("3", 0.5, "1 ½"),
        ("1/3", 0.5, "⅙"),
        ("2/5", 1, "2/5"),
        ("1.5", 2, "3"),
    ],
)
def test_scale_and_format(token, multiplier, expected):
    assert scale_quantity_text(token, multiplier) == expected


def test_scale_keeps_exact_thirds():
    value = scale_quantity(parse_quantity("1/3"), 3)
    assert value == Fraction(1)


def test_scale_range_scales_both_bounds():
    assert scale_quantity(QuantityRange(Fraction(1), Fraction(2)), Fraction(3, 2)) == \
        QuantityRange(Fraction(3, 2), Fraction(3))


@pytest.mark.parametrize("multiplier", [0, -1, -0.5])
def test_scale_rejects_non_positive_multiplier(multiplier):
    with pytest.raises(ValueError):
        scale_quantity(Fraction(1), multiplier)


def test_scale_text_passes_through_descriptive():
    assert scale_quantity_text("a pinch of", 2) == "a pinch of"


def test_format_below_min_display_is_zero():
    assert format_value(Fraction(1, 1000)) == "0"


def test_format_falls_back_to_truncated_decimal():
    assert format_value(Fraction(123, 1000)) == "0.12"


def test_format_snaps_within_tolerance():
    assert format_value(Fraction(333, 1000)) == "⅓"
    assert format_value(Fraction(1999, 1000)) == "2"


def test_format_tolerance_is_configurable():
    assert format_value(Fraction(333, 1000), tolerance=0) == "0.33"


def test_format_quantity_passes_strings_through():
    assert format_quantity("to taste") == "to taste"


def test_format_decimal():
    assert format_decimal(2.0) == "2"
    assert format_decimal(2.5) == "2.5"
    assert format_decimal(None) == ""


@pytest.mark.parametrize(
    "quantity, unit, expected",
    [
        (1, "Cup", (240, "ml")),
        (5, "Cup", (1.2, "l")),
        (1, "lb", (454.0, "g")),
        (3, "lb", (1.36, "kg")),
        (2, "Tbsp", (2, "Tbsp")),
        (1, "tsp", (1, "tsp")),
        (212, "°F", (100.0, "°C")),
        (3, "clove", (3, "clove")),
    ],
)
def test_convert_to_metric(quantity, unit, expected):
    assert convert_to_metric(quantity, unit) == expected
