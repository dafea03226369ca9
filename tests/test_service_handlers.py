import pytest

from recipe_ingest.const import SCRAPE_FAILED_MESSAGE
from recipe_ingest.services.recipe_service import RecipeIngestionPipeline
from recipe_ingest.services.service_handlers import handle_import, handle_ingest, handle_scale
from recipe_ingest.storage.repository import InMemoryRecipeRepository

from conftest import PANCAKES_URL


@pytest.fixture
def pancakes_pipeline(pancakes_html, make_fetcher, config):
    return RecipeIngestionPipeline(config, make_fetcher(pancakes_html))


def test_handle_ingest_returns_camel_case_json(pancakes_pipeline):
    result = handle_ingest({"url": PANCAKES_URL}, pancakes_pipeline)

    assert result["title"] == "Pancakes"
    assert result["sourceUrl"] == PANCAKES_URL
    assert result["ingredients"] == [{
        "items": [
            {"name": "Flour", "quantity": "2", "unit": "Cup"},
            {"name": "Salt", "quantity": "1", "unit": "tsp"},
        ],
    }]
    assert "error" not in result


@pytest.mark.parametrize("data", [{}, {"url": "not a url"}, {"url": 42}])
def test_handle_ingest_rejects_invalid_requests(data, pancakes_pipeline):
    result = handle_ingest(data, pancakes_pipeline)
    assert set(result) == {"error"}


def test_handle_ingest_reports_scrape_failure(failing_fetcher, config):
    result = handle_ingest({"url": PANCAKES_URL}, RecipeIngestionPipeline(config, failing_fetcher))
    assert result == {"error": SCRAPE_FAILED_MESSAGE}


def test_handle_import_persists_recipe(pancakes_pipeline):
    repository = InMemoryRecipeRepository()

    result = handle_import({"url": PANCAKES_URL}, pancakes_pipeline, repository, "user-1")

    assert result["ownerId"] == "user-1"
    assert result["sourceUrl"] == PANCAKES_URL
    stored = repository.get_recipe(result["id"], "user-1")
    assert stored.title == "Pancakes"


def test_handle_import_persists_nothing_on_failure(failing_fetcher, config):
    repository = InMemoryRecipeRepository()

    result = handle_import(
        {"url": PANCAKES_URL}, RecipeIngestionPipeline(config, failing_fetcher), repository, "user-1"
    )

    assert result == {"error": SCRAPE_FAILED_MESSAGE}
    assert repository.search_recipes("", "user-1") == []


def test_handle_scale():
    result = handle_scale({"ingredients": ["2 cups flour"], "multiplier": "0.5"})
    assert result == {"sections": [{"sectionName": None, "lines": ["1 Cup flour"]}]}


def test_handle_scale_defaults_to_unscaled():
    result = handle_scale({"ingredients": [{"sectionName": "Dough", "items": [
        {"name": "Yeast", "quantity": "1", "unit": "tsp"}
    ]}]})
    assert result == {"sections": [{"sectionName": "Dough", "lines": ["1 tsp yeast"]}]}


def test_handle_scale_converts_units_on_request():
    result = handle_scale({"ingredients": ["1 cup milk"], "convert_units": "yes"})
    assert result["sections"][0]["lines"] == ["240 ml milk"]


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"ingredients": ["1 cup rice"], "multiplier": 0},
        {"ingredients": ["1 cup rice"], "multiplier": "lots"},
        {"ingredients": "1 cup rice"},
    ],
)
def test_handle_scale_rejects_invalid_requests(data):
    assert set(handle_scale(data)) == {"error"}
