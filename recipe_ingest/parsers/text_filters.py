"""
Content-shape filters shared by the recipe extractors.

Pages mix recipe content with navigation, ads, FAQs and comments. The
predicates here decide whether a piece of text plausibly is an ingredient
line or an instruction step, and the helpers clean, split and de-duplicate
candidate lines before they are parsed.
"""
from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable
from typing import Any

from ..const import (
    DEFAULT_SERVINGS,
    INSTRUCTION_MAX_LENGTH,
    MAX_INGREDIENT_LENGTH,
    MAX_SERVINGS,
    MIN_SERVINGS,
)
from ..models.recipe import IngredientItem

_LOGGER = logging.getLogger(__name__)

_UNITS = (
    r"cups?|c|tbsp|tbs|tablespoons?|tsp|teaspoons?|lbs?|pounds?|oz|ounces?|"
    r"g|grams?|kg|kilograms?|ml|milliliters?|l|liters?|litres?|pints?|quarts?|"
    r"gallons?|cloves?|pieces?|slices?|strips?|sprigs?|sticks?|dashes|dash|"
    r"pinch(?:es)?|cans?|jars?|bottles?|bags?|box(?:es)?|packages?|heads?|"
    r"bulbs?|stalks?|bunch(?:es)?|inch(?:es)?|T|t"
)
_NUMBER_WORDS = r"one|two|three|four|five|six|seven|eight|nine|ten|twelve"
_FRACTION_CHARS = "½¼¾⅓⅔⅛⅜⅝⅞⅙⅚"

MEASUREMENT_RE = re.compile(
    rf"(?:\b\d+(?:\s*/\s*\d+)?|[{_FRACTION_CHARS}]|\b(?:{_NUMBER_WORDS}))"
    rf"\s*(?:{_UNITS})\b",
    re.IGNORECASE,
)
LEADING_MEASUREMENT_RE = re.compile(
    rf"^(?:\d+(?:[\s./]*\d+)*|[{_FRACTION_CHARS}]|\d+\s*[{_FRACTION_CHARS}])"
    rf"\s*(?:{_UNITS})\b\.?\s+\S",
    re.IGNORECASE,
)
STAPLE_RE = re.compile(
    r"\b(flour|sugar|butter|milk|eggs?|salt|pepper|oil|water|vanilla|baking|"
    r"powder|soda|yeast|cream|cheese|garlic|onions?|shallots?|potato(?:es)?|"
    r"bacon|chicken|beef|pork|rice|pasta|lemon|lime|honey|vinegar|stock|broth|"
    r"cinnamon|nutmeg|parsley|basil|thyme|oregano|tomato(?:es)?|carrots?|"
    r"grated|shredded|crumbled|chopped|minced|sliced|diced|fresh|dried|ground)\b",
    re.IGNORECASE,
)
INGREDIENT_EXCLUDE_RES = (
    re.compile(
        r"\b(what|why|how|can i|should i|tips|note|notes|storage|nutrition|faq|"
        r"frequently asked|question|answer|copyright|recipe card|print|comment|"
        r"share|follow|social|contact|privacy|terms|related|similar|more recipes|"
        r"you might also like|recommended|popular|trending|newsletter|subscribe|"
        r"sign up|login|register|account|search|category|archive|menu|"
        r"navigation|footer|sidebar|advertisement|sponsored|affiliate|"
        r"disclaimer|disclosure|policy|cookie)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\?\s*$"),
    re.compile(
        r"\b(substitute|replace|instead|alternative|variation|brand|store|buy|"
        r"purchase|where to)\b",
        re.IGNORECASE,
    ),
)
INGREDIENT_LOOKALIKE_MAX_LENGTH = 150

ACTION_RE = re.compile(
    r"\b(heat|cook|add|mix|stir|bake|place|remove|season|serve|combine|wash|"
    r"wrap|allow|cool|grate|transfer|top with|spread|until|minutes?|hours?|"
    r"degrees?|preheat|thoroughly|skillet|oven|bowl|dish|sauté|saute|simmer|"
    r"boil|whisk|fold|pour|roll|knead|chop|slice|fry|roast|grill|drain)\b",
    re.IGNORECASE,
)
BOILERPLATE_RE = re.compile(
    r"advertisement|subscribe|newsletter|sign up|cookie policy|all rights reserved",
    re.IGNORECASE,
)
SECTION_HEADER_RE = re.compile(
    r"^(step \d+|make the|cook the|prepare the|for the)(\s+\w+)?:?$", re.IGNORECASE
)
NUMBERED_STEP_RE = re.compile(r"^(?:\d+[.)]\s|step\s+\d+\b)", re.IGNORECASE)

HEADING_EXCLUDE_RE = re.compile(
    r"\b(faq|about|what|why|how|can i|tips|notes?|storage|nutrition|copyright|"
    r"recipe card|print|comments?|share|follow|social|contact|privacy|terms|"
    r"related|similar|more recipes|you might also like|recommended|popular|"
    r"trending|recent|newsletter|subscribe|join|sign up|login|register|"
    r"search|category|archive|menu|navigation|footer|sidebar|advertisement|"
    r"sponsored|affiliate|disclaimer|disclosure|policy|cookie)\b",
    re.IGNORECASE,
)
INGREDIENT_SECTION_RE = re.compile(
    r"ingredient|paste|dough|filling|icing|frosting|topping|sauce|marinade|"
    r"coating|batter|for the|glaze|syrup|mixture|dressing|crust|streusel|"
    r"garnish",
    re.IGNORECASE,
)
INSTRUCTION_SECTION_RE = re.compile(
    r"instructions?|method|directions?|steps?|preparation|assembl", re.IGNORECASE
)
GENERIC_INGREDIENTS_HEADING_RE = re.compile(r"^\s*ingredients?\s*:?\s*$", re.IGNORECASE)

_BULLET_SPLIT_RE = re.compile(r"\s*•\s*|(?<![\d\s])\s*–\s*|\s*–\s*(?![\d\s])")
_DASH_ITEM_RE = re.compile(r"^\s*-\s")
_LIST_MARKER_RE = re.compile(r"^\s*(?:[•▪●◦*]\s*|-\s+|\d+[.)]\s+)")
_TAG_RE = re.compile(r"<[^>]+>")

SERVINGS_PATTERNS = (
    re.compile(r"\bserves?\s+(\d+)", re.IGNORECASE),
    re.compile(r"\bservings?\s*:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"\byields?\s*:?\s+(\d+)", re.IGNORECASE),
    re.compile(r"\bmakes?\s+(\d+)", re.IGNORECASE),
    re.compile(r"\bfor\s+(\d+)\s+people", re.IGNORECASE),
)

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)


def clean_text(text: Any) -> str:
    """Unescape entities, drop stray tags and collapse whitespace."""
    if text is None:
        return ""
    value = html.unescape(str(text))
    value = _TAG_RE.sub(" ", value)
    return re.sub(r"\s+", " ", value).strip()


def strip_list_marker(text: str) -> str:
    """Remove a leading bullet, dash or "1." list marker."""
    return _LIST_MARKER_RE.sub("", text, count=1).strip()


def has_measurement_or_staple(text: str) -> bool:
    """True if the text carries a measurement or a common pantry word."""
    return bool(MEASUREMENT_RE.search(text) or STAPLE_RE.search(text))


def looks_like_ingredient(text: str) -> bool:
    """Decide whether a line plausibly is a single ingredient.

    Rejects questions, FAQ and site chrome vocabulary and long prose, then
    requires a measurement or a pantry-staple keyword.
    """
    if not text:
        return False
    for pattern in INGREDIENT_EXCLUDE_RES:
        if pattern.search(text):
            return False
    if len(text) > INGREDIENT_LOOKALIKE_MAX_LENGTH:
        return False
    return has_measurement_or_staple(text)


def starts_with_measurement(text: str) -> bool:
    return bool(LEADING_MEASUREMENT_RE.match(text))


def has_cooking_action(text: str) -> bool:
    return bool(ACTION_RE.search(text))


def is_boilerplate(text: str) -> bool:
    return bool(BOILERPLATE_RE.search(text))


def is_section_header(text: str) -> bool:
    """Short "For the sauce:"-style labels and bare "Step 3" markers."""
    stripped = text.strip()
    if stripped.endswith(":") and len(stripped) < 50:
        return True
    return bool(SECTION_HEADER_RE.match(stripped))


def is_usable_instruction(text: str, min_length: int = 15) -> bool:
    """Length window, no boilerplate, not a bare header."""
    return (
        min_length < len(text) < INSTRUCTION_MAX_LENGTH
        and not is_boilerplate(text)
        and not is_section_header(text)
    )


def has_usable_instruction(steps: Iterable[str]) -> bool:
    """True if at least one step is real prose rather than a header."""
    return any(len(step) > 15 and not is_section_header(step) for step in steps)


def split_list_text(text: str, split_on_spaces: bool = True) -> list[str]:
    """Split text that packs several list entries into one element.

    Splits on newlines, bullets, en-dashes and list-style "- " prefixes,
    and optionally on runs of two or more spaces or tabs. Hyphens inside
    words ("all-purpose") and en-dash ranges ("1–2") are never split.
    """
    if not text or not text.strip():
        return []

    if "\n" in text:
        parts = text.split("\n")
    elif _BULLET_SPLIT_RE.search(text):
        parts = _BULLET_SPLIT_RE.split(text)
    elif _DASH_ITEM_RE.search(text):
        parts = _DASH_ITEM_RE.split(text)
    elif split_on_spaces and ("  " in text.strip() or "\t" in text.strip()):
        parts = re.split(r"\s{2,}|\t", text.strip())
    else:
        return [text.strip()]

    result = []
    for part in parts:
        result.extend(split_list_text(part, split_on_spaces))
    return result


_KEY_QUANTITY_RE = re.compile(
    rf"^(?:\d+(?:\.\d+)?(?:\s*/\s*\d+)?(?:\s+\d+\s*/\s*\d+)?|[{_FRACTION_CHARS}])\s*"
    rf"(?:(?:to|or|-)\s*\d+(?:\s*/\s*\d+)?\s*)?"
)
_KEY_UNIT_RE = re.compile(rf"\b(?:{_UNITS})\b\.?", re.IGNORECASE)
_KEY_DESCRIPTOR_RE = re.compile(
    r"^(?:(?:large|medium|small|whole|fresh|dried|ground|chopped|minced|sliced|"
    r"diced|grated|shredded|crumbled|softened|melted|packed|optional|sharp|aged|"
    r"extra|virgin|unsalted|salted|heavy|light)\s+)+",
    re.IGNORECASE,
)
_KEY_TRAILING_RE = re.compile(
    r"\s*,\s*(?:shredded|grated|crumbled|chopped|minced|sliced|diced|optional"
    r"|to taste|divided|softened|melted).*$",
    re.IGNORECASE,
)
_DETAIL_WORDS_RE = re.compile(
    r"\b(large|medium|small|russet|white|sharp|shredded|grated|crumbled|optional|"
    r"fresh|dried|ground|chopped|minced|sliced|diced|softened|melted|packed)\b",
    re.IGNORECASE,
)
_HAS_QUANTITY_RE = re.compile(
    r"^\d|\d+\s*(?:cup|tbsp|tsp|oz|lb|pound|ounce|g|gram|kg|ml|l)\b", re.IGNORECASE
)


def semantic_key(text: str) -> str:
    """Normalize an ingredient to a key that ignores amounts and descriptors.

    "2 cups shredded cheddar cheese" and "cheddar cheese (optional)" share
    the key "cheddar cheese".
    """
    key = text.lower().strip()
    key = _KEY_QUANTITY_RE.sub("", key)
    key = _KEY_UNIT_RE.sub(" ", key)
    key = re.sub(r"\s*\([^)]*\)\s*", " ", key)
    key = re.sub(r"\s+", " ", key).strip()
    key = re.sub(r"^of\s+", "", key)
    key = _KEY_DESCRIPTOR_RE.sub("", key)
    key = _KEY_TRAILING_RE.sub("", key)
    key = re.sub(r"\s+", " ", key).strip()
    return key or text.lower().strip()


def is_more_detailed(candidate: str, existing: str) -> bool:
    """Prefer a line with a quantity, then more descriptors, then the longer one."""
    has_qty_candidate = bool(_HAS_QUANTITY_RE.search(candidate))
    has_qty_existing = bool(_HAS_QUANTITY_RE.search(existing))
    if has_qty_candidate != has_qty_existing:
        return has_qty_candidate

    detail_candidate = len(_DETAIL_WORDS_RE.findall(candidate))
    detail_existing = len(_DETAIL_WORDS_RE.findall(existing))
    if detail_candidate != detail_existing:
        return detail_candidate > detail_existing

    return len(candidate) > len(existing)


def dedupe_exact(lines: Iterable[str]) -> list[str]:
    """Case-insensitive exact de-duplication, keeping first occurrences."""
    seen: set[str] = set()
    result = []
    for line in lines:
        key = line.lower().strip()
        if key in seen:
            _LOGGER.debug("Removed exact duplicate: %r", line)
            continue
        seen.add(key)
        result.append(line)
    return result


def dedupe_semantic(lines: Iterable[str]) -> list[str]:
    """Merge lines sharing a semantic key, keeping the more detailed one in place."""
    result: list[str] = []
    positions: dict[str, int] = {}
    for line in lines:
        key = semantic_key(line)
        if key not in positions:
            positions[key] = len(result)
            result.append(line)
            continue
        index = positions[key]
        if is_more_detailed(line, result[index]):
            _LOGGER.debug("Replacing %r with more detailed %r", result[index], line)
            result[index] = line
        else:
            _LOGGER.debug("Dropped semantic duplicate %r of %r", line, result[index])
    return result


def _basic_clean(lines: Iterable[str]) -> list[str]:
    cleaned = (clean_text(line) for line in lines)
    return [line for line in cleaned if line and len(line) < MAX_INGREDIENT_LENGTH]


def clean_structured_ingredients(lines: Iterable[str]) -> list[str]:
    """Cleaning applied to structured-data ingredient lines."""
    return dedupe_exact(_basic_clean(lines))


def clean_heuristic_ingredients(lines: Iterable[str]) -> list[str]:
    """Cleaning applied to ingredient candidates scraped from markup.

    Applies the look-alike filter unless it would remove every line, then
    exact and semantic de-duplication.
    """
    candidates = dedupe_exact(strip_list_marker(line) for line in _basic_clean(lines))
    candidates = [line for line in candidates if line]
    filtered = [line for line in candidates if looks_like_ingredient(line)]
    if filtered:
        dropped = len(candidates) - len(filtered)
        if dropped:
            _LOGGER.debug("Filtered %d non-ingredient lines", dropped)
        candidates = filtered
    elif candidates:
        _LOGGER.debug("Look-alike filter would drop all %d lines, keeping them",
                      len(candidates))
    return dedupe_semantic(candidates)


def dedupe_items(items: Iterable[IngredientItem]) -> list[IngredientItem]:
    """Drop parsed items whose names share a semantic key with an earlier item."""
    seen: set[str] = set()
    result = []
    for item in items:
        key = semantic_key(item.name)
        if key in seen:
            _LOGGER.debug("Removed duplicate ingredient item %r", item.name)
            continue
        seen.add(key)
        result.append(item)
    return result


def parse_servings(value: Any) -> int:
    """Servings from a recipeYield-style value; the first integer found, else 1."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, bool) or value is None:
        return DEFAULT_SERVINGS
    if isinstance(value, (int, float)):
        servings = int(value)
        return servings if servings >= MIN_SERVINGS else DEFAULT_SERVINGS
    match = re.search(r"\d+", str(value))
    if match:
        servings = int(match.group())
        if servings >= MIN_SERVINGS:
            return servings
    return DEFAULT_SERVINGS


def find_servings(text: str) -> int | None:
    """Search free text for "serves N"-style phrases.

    Returns:
        The first count within 1 to 100, or None
    """
    if not text:
        return None
    for pattern in SERVINGS_PATTERNS:
        for match in pattern.finditer(text):
            servings = int(match.group(1))
            if MIN_SERVINGS <= servings <= MAX_SERVINGS:
                _LOGGER.debug("Servings %d found via pattern %s",
                              servings, pattern.pattern)
                return servings
    return None


def format_duration(value: Any) -> str | None:
    """Render an ISO-8601 duration as "1h 30m" or "45 min".

    Non-ISO text is returned verbatim; empty input and zero durations give
    None.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    match = _ISO_DURATION_RE.match(text)
    if not match or text.upper() in ("P", "PT"):
        return text

    days = int(match.group("days") or 0)
    hours = int(match.group("hours") or 0) + days * 24
    minutes = int(match.group("minutes") or 0)

    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    if minutes:
        return f"{minutes} min"
    return None
