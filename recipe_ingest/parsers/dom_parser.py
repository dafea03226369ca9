"""
Heuristic DOM Recipe Parser.

When a page carries no structured recipe data, fields are located with
ranked strategy lists: site-convention selectors first, then generic
selectors, then heading-anchored section walks and finally whole-page
text mining. Strategies are pure functions of the document evaluated in
order; evaluation stops as soon as the best result so far is viable.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..const import (
    DEFAULT_SERVINGS,
    DEFAULT_TITLE,
    EVENT_STRATEGY_MATCHED,
    INGREDIENT_SECTION_WALK_LIMIT,
    INSTRUCTION_MAX_LENGTH,
    INSTRUCTION_MIN_LENGTH,
    INSTRUCTION_SECTION_WALK_LIMIT,
    MAX_INGREDIENT_LENGTH,
    MIN_VIABLE_INSTRUCTIONS,
    PLACEHOLDER_INSTRUCTION,
)
from ..models.recipe import (
    IngredientItem,
    IngredientSection,
    InstructionSection,
    InstructionStep,
    PartialRecipe,
)
from . import media
from .base_parser import BaseRecipeParser
from .ingredient_parser import capitalize_first, parse_ingredient_line, standardize_unit
from .text_filters import (
    GENERIC_INGREDIENTS_HEADING_RE,
    HEADING_EXCLUDE_RE,
    INGREDIENT_SECTION_RE,
    INSTRUCTION_SECTION_RE,
    NUMBERED_STEP_RE,
    clean_heuristic_ingredients,
    clean_text,
    dedupe_exact,
    dedupe_items,
    find_servings,
    format_duration,
    has_cooking_action,
    is_boilerplate,
    is_usable_instruction,
    looks_like_ingredient,
    parse_servings,
    split_list_text,
    starts_with_measurement,
)

_LOGGER = logging.getLogger(__name__)

TITLE_SELECTORS = (
    "h1.recipe-title",
    'h1[class*="recipe"][class*="title"]',
    ".recipe-header h1",
    ".wprm-recipe-name",
    "h1.entry-title",
    "h1",
)

DESCRIPTION_SELECTORS = (
    ".recipe-description",
    ".recipe-summary",
    ".wprm-recipe-summary",
    '[class*="description"]',
    ".entry-summary",
)

CATEGORY_SELECTORS = (
    ".wprm-recipe-course",
    ".recipe-category",
    '[class*="recipe-category"]',
)

INGREDIENT_SELECTORS = (
    ".wprm-recipe-ingredient",
    ".recipe-ingredient",
    ".ingredients li",
    ".recipe-ingredients li",
    ".wp-block-recipe-card-ingredient",
    ".recipe-card-ingredient",
    ".recipe-ingredients .ingredient",
    ".ingredient-list li",
    ".ingredients-list li",
    'li[class*="ingredient"]',
    '[class*="ingredient"] li',
    ".entry-content ul li",
    "ul li",
)

INSTRUCTION_SELECTORS = (
    ".wprm-recipe-instruction-text",
    ".wprm-recipe-instruction",
    ".recipe-instruction",
    ".instructions li",
    ".recipe-instructions li",
    ".recipe-directions li",
    ".directions li",
    ".method li",
    ".steps li",
    ".recipe-method li",
    ".recipe-steps li",
    ".preparation li",
    ".how-to li",
    ".recipe-card-instructions li",
    ".instructions-list li",
    ".directions-list li",
    "[data-recipe-instructions] li",
    ".recipe-instruction-text",
    ".instruction-text",
    ".step-description",
    ".directions p",
    ".instructions p",
    ".method p",
    ".recipe-directions p",
    ".recipe-instructions p",
    ".entry-content ol li",
    ".post-content ol li",
    "main ol li",
    "article ol li",
    "ol li",
)

CONTENT_AREA_SELECTORS = (
    ".recipe-content",
    ".post-content",
    ".entry-content",
    ".post-body",
    ".article-content",
    ".main-content",
    ".content",
    "article",
    "main",
)

COOK_TIME_SELECTORS = (
    ".recipe-cook-time",
    '[class*="cook-time"]',
    '[class*="total-time"]',
    ".recipe-meta .time",
)

SERVINGS_SELECTORS = (
    ".recipe-servings",
    '[class*="servings"]',
    '[class*="yield"]',
    ".recipe-meta .servings",
)

SECTION_HEADING_SELECTOR = (
    "h2, h3, h4, h5, h6, strong, b, .recipe-section-title, .ingredient-section, "
    ".section-title, .wp-block-heading, .ingredient-header"
)
INSTRUCTION_HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6, strong, b"

_NON_CONTENT_TAGS = ("script", "style", "noscript", "template", "svg", "nav", "footer",
                     "aside", "form")
_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_MAX_HEADING_LENGTH = 80


@dataclass(frozen=True)
class Strategy:
    """A named extraction attempt over a document."""

    name: str
    run: Callable[[BeautifulSoup], list[Any]]


def first_viable(
    strategies: Sequence[Strategy],
    soup: BeautifulSoup,
    is_viable: Callable[[list[Any]], bool],
    on_match: Callable[[str, list[Any]], None] | None = None,
) -> tuple[str | None, list[Any]]:
    """Evaluate strategies in order and keep the richest result.

    A later strategy replaces the best result only when it yields strictly
    more candidates. Evaluation stops once the best result is viable.

    Args:
        strategies: Strategies in priority order
        soup: Document passed to every strategy
        is_viable: Minimum-viability predicate over a result
        on_match: Called with the winning strategy name and result

    Returns:
        Tuple of (strategy name or None, result list)
    """
    best_name: str | None = None
    best: list[Any] = []

    for strategy in strategies:
        result = strategy.run(soup)
        _LOGGER.debug("Strategy %s produced %d candidates", strategy.name, len(result))
        if len(result) > len(best):
            best_name, best = strategy.name, result
        if best and is_viable(best):
            break

    if best_name is not None and on_match:
        on_match(best_name, best)
    return best_name, best


def content_copy(soup: BeautifulSoup) -> BeautifulSoup:
    """Copy of the document without scripts, styles and site chrome."""
    page = copy.copy(soup)
    for element in page.find_all(list(_NON_CONTENT_TAGS)):
        if not element.decomposed:
            element.decompose()
    return page


def page_lines(soup: BeautifulSoup) -> list[str]:
    """Visible text of the body, one cleaned line per text block."""
    body = soup.body or soup
    lines = (clean_text(line) for line in body.get_text("\n").split("\n"))
    return [line for line in lines if line]


def select_text(soup: BeautifulSoup, selectors: Sequence[str]) -> tuple[str | None, str | None]:
    """Text of the first selector yielding a non-empty element."""
    for selector in selectors:
        for element in soup.select(selector):
            text = clean_text(element.get_text(" "))
            if text:
                return selector, text
    return None, None


def _element_lines(element: Tag) -> list[str]:
    lines = (clean_text(line) for line in element.get_text().split("\n"))
    return [line for line in lines if line]


def _heading_title(element: Tag) -> str | None:
    """Usable text of a heading-like element, or None."""
    title = clean_text(element.get_text(" "))
    if not title or len(title) > _MAX_HEADING_LENGTH:
        return None
    if element.find_parent("li") is not None:
        return None
    return title


def _walk_anchor(heading: Tag, title: str) -> Tag:
    """Inline headings (<p><strong>Filling</strong></p>) walk from their block."""
    parent = heading.parent
    if heading.name in ("strong", "b") and isinstance(parent, Tag) \
            and parent.name in ("p", "div", "span") \
            and clean_text(parent.get_text(" ")) == title:
        return parent
    return heading


def _is_heading_block(node: Tag) -> bool:
    if node.name in _HEADING_TAGS:
        return True
    classes = " ".join(node.get("class") or [])
    if "section-title" in classes or "wp-block-heading" in classes \
            or "ingredient-header" in classes:
        return True
    if node.name in ("p", "div"):
        text = clean_text(node.get_text(" "))
        inline = node.find(["strong", "b"])
        return bool(text) and len(text) < 60 and inline is not None \
            and clean_text(inline.get_text(" ")) == text
    return False


def _list_items(node: Tag) -> list[str]:
    return [clean_text(li.get_text(" ")) for li in node.find_all("li")]


def _build_ingredient_section(name: str | None, lines: list[str]) -> IngredientSection | None:
    cleaned = clean_heuristic_ingredients(lines)
    items = dedupe_items(parse_ingredient_line(line) for line in cleaned)
    if not items:
        return None
    return IngredientSection(section_name=name, items=items)


def _wprm_item(element: Tag) -> IngredientItem | None:
    name_el = element.select_one(".wprm-recipe-ingredient-name")
    if name_el is None:
        text = clean_text(element.get_text(" "))
        return parse_ingredient_line(text) if text else None

    name = clean_text(name_el.get_text(" "))
    if not name:
        return None
    amount_el = element.select_one(".wprm-recipe-ingredient-amount")
    unit_el = element.select_one(".wprm-recipe-ingredient-unit")
    amount = clean_text(amount_el.get_text(" ")) if amount_el else ""
    unit = clean_text(unit_el.get_text(" ")) if unit_el else ""
    return IngredientItem(
        name=capitalize_first(name),
        quantity=amount or None,
        unit=standardize_unit(unit) if unit else None,
    )


def wprm_ingredients(soup: BeautifulSoup) -> list[IngredientSection]:
    """Ingredients from WP Recipe Maker markup, one section per ingredient group."""
    groups = soup.select(".wprm-recipe-ingredient-group")
    containers: list[tuple[str | None, list[Tag]]] = []
    if groups:
        for group in groups:
            name_el = group.select_one(".wprm-recipe-group-name")
            name = clean_text(name_el.get_text(" ")) if name_el else ""
            containers.append((name or None, group.select(".wprm-recipe-ingredient")))
    else:
        containers.append((None, soup.select(".wprm-recipe-ingredient")))

    sections = []
    for name, elements in containers:
        items = dedupe_items(
            item for item in (_wprm_item(el) for el in elements) if item is not None
        )
        if items:
            sections.append(IngredientSection(section_name=name, items=items))
    return sections


def heading_ingredient_sections(soup: BeautifulSoup) -> list[IngredientSection]:
    """Associate ingredient-vocabulary headings with the lists that follow them.

    Walks at most a few siblings past each heading, stopping at the next
    heading. A plain "Ingredients" heading gives an unnamed section.
    """
    sections: list[IngredientSection] = []
    consumed: set[int] = set()

    for heading in soup.select(SECTION_HEADING_SELECTOR):
        title = _heading_title(heading)
        if not title or HEADING_EXCLUDE_RE.search(title) \
                or not INGREDIENT_SECTION_RE.search(title):
            continue

        anchor = _walk_anchor(heading, title)
        lines: list[str] = []
        node = anchor.find_next_sibling()
        hops = 0

        while node is not None and hops < INGREDIENT_SECTION_WALK_LIMIT:
            hops += 1
            if _is_heading_block(node):
                break
            if node.name in ("ul", "ol") or (node.name == "div" and node.find(["ul", "ol"])):
                if id(node) in consumed:
                    break
                consumed.add(id(node))
                lines.extend(_list_items(node))
                break
            if node.name in ("p", "div"):
                text = clean_text(node.get_text(" "))
                if text and len(text) < MAX_INGREDIENT_LENGTH and looks_like_ingredient(text):
                    lines.append(text)
            node = node.find_next_sibling()

        if not lines:
            continue
        name = None if GENERIC_INGREDIENTS_HEADING_RE.match(title) else title.rstrip(":").strip()
        section = _build_ingredient_section(name, lines)
        if section is not None:
            _LOGGER.debug("Heading %r yielded %d ingredients", title, len(section.items))
            sections.append(section)

    return sections


def selector_ingredients(soup: BeautifulSoup) -> list[IngredientSection]:
    """Flat ingredient list from the first selector with plausible lines."""
    for selector in INGREDIENT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        lines: list[str] = []
        for element in elements:
            lines.extend(split_list_text(element.get_text()))
        lines = [line for line in (clean_text(l) for l in lines) if len(line) >= 3]
        if any(looks_like_ingredient(line) for line in lines):
            _LOGGER.debug("Ingredient selector %r matched %d lines", selector, len(lines))
            section = _build_ingredient_section(None, lines)
            return [section] if section is not None else []
    return []


def page_text_ingredients(soup: BeautifulSoup) -> list[IngredientSection]:
    """Last resort: page lines that start with a measurement."""
    lines = [
        line for line in page_lines(soup)
        if len(line) < MAX_INGREDIENT_LENGTH and starts_with_measurement(line)
    ]
    section = _build_ingredient_section(None, lines) if lines else None
    return [section] if section is not None else []


INGREDIENT_STRATEGIES = (
    Strategy("wprm", wprm_ingredients),
    Strategy("section-headings", heading_ingredient_sections),
    Strategy("selectors", selector_ingredients),
    Strategy("page-text", page_text_ingredients),
)


def _in_instruction_window(text: str) -> bool:
    return INSTRUCTION_MIN_LENGTH <= len(text) <= INSTRUCTION_MAX_LENGTH \
        and not is_boilerplate(text) and not text.endswith(":")


def selector_instructions(soup: BeautifulSoup) -> list[str]:
    """Steps from the first instruction selector with usable text."""
    for selector in INSTRUCTION_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        lines: list[str] = []
        for element in elements:
            lines.extend(_element_lines(element))
        usable = dedupe_exact(line for line in lines if is_usable_instruction(line))
        if usable:
            _LOGGER.debug("Instruction selector %r matched %d steps", selector, len(usable))
            return usable
    return []


def numbered_instructions(soup: BeautifulSoup) -> list[str]:
    """Paragraphs and divs whose own text starts with "1." or "Step 1"."""
    steps = []
    for element in soup.find_all(["p", "div"]):
        if element.find(["p", "div"]) is not None:
            continue
        text = clean_text(element.get_text(" "))
        if NUMBERED_STEP_RE.match(text) and _in_instruction_window(text):
            steps.append(text)
    return dedupe_exact(steps)


def action_instructions(soup: BeautifulSoup) -> list[str]:
    """Paragraphs and list items using cooking-action vocabulary."""
    areas = [area for selector in CONTENT_AREA_SELECTORS for area in soup.select(selector)]
    if not areas:
        areas = [soup.body or soup]

    for area in areas:
        steps = []
        for element in area.find_all(["p", "li"]):
            text = clean_text(element.get_text(" "))
            if _in_instruction_window(text) and has_cooking_action(text):
                steps.append(text)
        if steps:
            return dedupe_exact(steps)
    return []


def heading_instructions(soup: BeautifulSoup) -> list[str]:
    """Steps following headings such as "Instructions" or "Make the sauce"."""
    steps: list[str] = []
    for heading in soup.select(INSTRUCTION_HEADING_SELECTOR):
        title = _heading_title(heading)
        if not title or HEADING_EXCLUDE_RE.search(title) \
                or not INSTRUCTION_SECTION_RE.search(title):
            continue

        node = _walk_anchor(heading, title).find_next_sibling()
        hops = 0
        while node is not None and hops < INSTRUCTION_SECTION_WALK_LIMIT:
            hops += 1
            if _is_heading_block(node):
                break
            if node.name in ("ol", "ul"):
                steps.extend(t for t in _list_items(node) if _in_instruction_window(t))
            elif node.name in ("p", "div"):
                text = clean_text(node.get_text(" "))
                if _in_instruction_window(text):
                    steps.append(text)
            node = node.find_next_sibling()
    return dedupe_exact(steps)


def page_text_instructions(soup: BeautifulSoup) -> list[str]:
    """Last resort: numbered or action-bearing sentences anywhere on the page."""
    steps = [
        line for line in page_lines(soup)
        if _in_instruction_window(line)
        and (NUMBERED_STEP_RE.match(line) or has_cooking_action(line))
    ]
    return dedupe_exact(steps)


INSTRUCTION_STRATEGIES = (
    Strategy("selectors", selector_instructions),
    Strategy("numbered-steps", numbered_instructions),
    Strategy("action-vocabulary", action_instructions),
    Strategy("section-headings", heading_instructions),
    Strategy("page-text", page_text_instructions),
)


def _has_viable_instructions(steps: list[str]) -> bool:
    return len(steps) >= MIN_VIABLE_INSTRUCTIONS


class HeuristicDomParser(BaseRecipeParser):
    """Extracts a recipe from page markup when no structured data exists.

    Every field degrades to an empty value or a placeholder rather than
    failing, so parse always returns a PartialRecipe.
    """

    def _on_match(self, field: str) -> Callable[[str, list[Any]], None]:
        def report(strategy: str, result: list[Any]) -> None:
            _LOGGER.debug("Field %s matched by strategy %s (%d)", field, strategy, len(result))
            self._emit(EVENT_STRATEGY_MATCHED, {
                "field": field,
                "strategy": strategy,
                "count": len(result),
            })
        return report

    def extract_ingredients(self, page: BeautifulSoup) -> list[IngredientSection]:
        _, sections = first_viable(
            INGREDIENT_STRATEGIES, page, bool, self._on_match("ingredients")
        )
        return sections

    def extract_instruction_texts(self, page: BeautifulSoup) -> list[str]:
        """Flat instruction strings from the tiered cascade.

        Expects a document already stripped with content_copy().
        """
        _, steps = first_viable(
            INSTRUCTION_STRATEGIES, page, _has_viable_instructions,
            self._on_match("instructions"),
        )
        return dedupe_exact(steps)

    def _extract_text_field(self, page: BeautifulSoup, field: str,
                            selectors: Sequence[str]) -> str | None:
        selector, text = select_text(page, selectors)
        if selector is not None:
            self._on_match(field)(selector, [text])
        return text

    def _extract_cook_time(self, page: BeautifulSoup) -> str | None:
        for selector in COOK_TIME_SELECTORS:
            for element in page.select(selector):
                raw = element.get("datetime") or element.get("content") \
                    or clean_text(element.get_text(" "))
                if raw:
                    return format_duration(raw)
        return None

    def _extract_servings(self, page: BeautifulSoup, title: str | None,
                          description: str | None, steps: list[str]) -> int:
        _, text = select_text(page, SERVINGS_SELECTORS)
        servings = parse_servings(text)
        if servings == DEFAULT_SERVINGS:
            corpus = " ".join(filter(None, [title, description, *steps, *page_lines(page)]))
            found = find_servings(corpus)
            if found:
                servings = found
        return servings

    def parse(self, soup: BeautifulSoup, url: str | None = None) -> PartialRecipe:
        """Extract every field from the markup, degrading rather than failing."""
        page = content_copy(soup)

        title = self._extract_text_field(page, "title", TITLE_SELECTORS)
        description = self._extract_text_field(page, "description", DESCRIPTION_SELECTORS)
        ingredients = self.extract_ingredients(page)
        steps = self.extract_instruction_texts(page)

        if steps:
            images = media.find_step_images(page, len(steps), url)
            instructions = [InstructionSection(steps=[
                InstructionStep(text=text, image_url=image)
                for text, image in zip(steps, images)
            ])]
        else:
            _LOGGER.warning("No usable instructions found, using placeholder")
            instructions = [InstructionSection(
                steps=[InstructionStep(text=PLACEHOLDER_INSTRUCTION)]
            )]

        return PartialRecipe(
            title=title or DEFAULT_TITLE,
            description=description,
            cook_time=self._extract_cook_time(page),
            servings=self._extract_servings(page, title, description, steps),
            category=self._extract_text_field(page, "category", CATEGORY_SELECTORS),
            image_url=media.find_image(page, url),
            video_url=media.find_video(page),
            ingredients=ingredients,
            instructions=instructions,
        )
