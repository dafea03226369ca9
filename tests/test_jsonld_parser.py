import json

from bs4 import BeautifulSoup

from recipe_ingest.const import DEFAULT_TITLE, EVENT_STRATEGY_MATCHED, PLACEHOLDER_INSTRUCTION
from recipe_ingest.models.recipe import IngredientItem
from recipe_ingest.parsers.jsonld_parser import JSONLDRecipeParser, find_recipe_object, is_recipe

from conftest import jsonld_page


def _parse(data, body="", url=None):
    soup = BeautifulSoup(jsonld_page(data, body), "html.parser")
    return JSONLDRecipeParser().parse(soup, url)


def test_pancakes(pancakes_html):
    events = []
    parser = JSONLDRecipeParser(lambda event, data: events.append((event, data)))
    recipe = parser.parse(BeautifulSoup(pancakes_html, "html.parser"))

    assert recipe.title == "Pancakes"
    assert recipe.servings == 4
    assert len(recipe.ingredients) == 1
    assert recipe.ingredients[0].section_name is None
    assert recipe.ingredients[0].items == [
        IngredientItem(name="Flour", quantity="2", unit="Cup"),
        IngredientItem(name="Salt", quantity="1", unit="tsp"),
    ]
    assert [step.text for step in recipe.instructions[0].steps] == ["Mix.", "Cook."]
    assert events[0][0] == EVENT_STRATEGY_MATCHED


def test_no_recipe_returns_none():
    soup = BeautifulSoup(
        jsonld_page({"@type": "WebSite", "name": "My Blog"}, "<h1>Hello</h1>"), "html.parser"
    )
    assert JSONLDRecipeParser().parse(soup) is None


def test_recipe_inside_graph_with_type_list():
    data = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebPage", "name": "Page"},
            {"@type": ["Recipe", "NewsArticle"], "name": "Stew",
             "recipeIngredient": ["1 lb beef"]},
        ],
    }
    recipe = _parse(data)
    assert recipe.title == "Stew"
    assert recipe.ingredients[0].items[0].unit == "lb"


def test_find_recipe_object_searches_lists_and_main_entity():
    data = [{"@type": "WebPage", "mainEntity": {"@type": "Recipe", "name": "Tart"}}]
    assert find_recipe_object(data)["name"] == "Tart"
    assert is_recipe({"@type": "Recipe"})
    assert not is_recipe({"@type": "HowTo"})
    assert not is_recipe("Recipe")


def test_malformed_block_is_skipped():
    valid = json.dumps({"@type": "Recipe", "name": "Bread"})
    html = (
        '<html><head><script type="application/ld+json">{"@type": "Recipe", broken</script>'
        f'<script type="application/ld+json">{valid}</script></head><body></body></html>'
    )
    recipe = JSONLDRecipeParser().parse(BeautifulSoup(html, "html.parser"))
    assert recipe.title == "Bread"


def test_how_to_sections_become_named_instruction_sections():
    data = {
        "@type": "Recipe",
        "name": "Cake",
        "recipeInstructions": [
            {
                "@type": "HowToSection",
                "name": "For the cake",
                "itemListElement": [
                    {"@type": "HowToStep", "text": "Cream the butter and sugar together."},
                    {"@type": "HowToStep", "text": "Fold in the flour gently."},
                ],
            },
            {
                "@type": "HowToSection",
                "name": "For the glaze",
                "itemListElement": [
                    {"@type": "HowToStep", "text": "Whisk the icing sugar with lemon juice."},
                ],
            },
        ],
    }
    recipe = _parse(data)

    assert [s.section_name for s in recipe.instructions] == ["For the cake", "For the glaze"]
    assert recipe.step_count() == 3


def test_instruction_string_is_split_into_steps():
    data = {"@type": "Recipe", "name": "Tea", "recipeInstructions": "Boil water.\nSteep the tea."}
    recipe = _parse(data)
    assert [step.text for step in recipe.instructions[0].steps] == ["Boil water.", "Steep the tea."]


def test_missing_instructions_use_placeholder():
    recipe = _parse({"@type": "Recipe", "name": "Mystery"})
    assert [step.text for step in recipe.instructions[0].steps] == [PLACEHOLDER_INSTRUCTION]


def test_missing_name_uses_default_title():
    recipe = _parse({"@type": "Recipe", "recipeIngredient": ["1 egg"]})
    assert recipe.title == DEFAULT_TITLE


def test_ingredient_objects_and_duplicates():
    data = {
        "@type": "Recipe",
        "name": "Syrup",
        "recipeIngredient": [
            {"name": "1 cup sugar"},
            "1 Cup Sugar",
            "2 tbsp sugar",
            "",
        ],
    }
    recipe = _parse(data)
    items = recipe.ingredients[0].items
    assert [(i.quantity, i.unit, i.name) for i in items] == [
        ("1", "Cup", "Sugar"),
        ("2", "Tbsp", "Sugar"),
    ]


def test_metadata_fields():
    data = {
        "@type": "Recipe",
        "name": "Roast Chicken",
        "description": "Crispy &amp; juicy.",
        "cookTime": "PT1H30M",
        "recipeYield": ["6 servings"],
        "recipeCategory": ["Dinner", "Main"],
        "image": [
            "https://example.com/chicken-small.jpg",
            "https://example.com/chicken-large.jpg",
        ],
        "video": {"@type": "VideoObject", "embedUrl": "//www.youtube.com/embed/abc123"},
    }
    recipe = _parse(data)

    assert recipe.description == "Crispy & juicy."
    assert recipe.cook_time == "1h 30m"
    assert recipe.servings == 6
    assert recipe.category == "Dinner"
    assert recipe.image_url == "https://example.com/chicken-large.jpg"
    assert recipe.video_url == "https://www.youtube.com/embed/abc123"


def test_total_time_used_when_cook_time_missing():
    recipe = _parse({"@type": "Recipe", "name": "Salad", "totalTime": "PT15M"})
    assert recipe.cook_time == "15 min"


def test_servings_inferred_from_description():
    data = {"@type": "Recipe", "name": "Chili", "description": "A hearty pot that serves 8."}
    assert _parse(data).servings == 8


def test_image_falls_back_to_markup_and_resolves_relative_url():
    body = '<meta property="og:image" content="/images/pie.jpg">'
    recipe = _parse({"@type": "Recipe", "name": "Pie"}, body, url="https://example.com/recipes/pie")
    assert recipe.image_url == "https://example.com/images/pie.jpg"


def test_zero_cook_time_falls_back_to_total_time():
    recipe = _parse({"@type": "Recipe", "name": "Salad", "cookTime": "PT0M", "totalTime": "PT15M"})
    assert recipe.cook_time == "15 min"
