import asyncio

import pytest
import requests
from cloudscraper.exceptions import CloudflareChallengeError

from recipe_ingest.config import IngestConfig
from recipe_ingest.const import (
    DEFAULT_TITLE,
    EVENT_EXTRACTION_COMPLETE,
    EVENT_METHOD_DETECTED,
    EXTRACTION_HEURISTIC,
    EXTRACTION_JSONLD,
    PLACEHOLDER_INSTRUCTION,
    SCRAPE_FAILED_MESSAGE,
)
from recipe_ingest.exceptions import ScrapeFailed
from recipe_ingest.extractors import scraper
from recipe_ingest.models.recipe import IngredientItem
from recipe_ingest.services.recipe_service import RecipeIngestionPipeline

from conftest import PANCAKES_URL, jsonld_page


def test_pancakes_scenario(pancakes_html, make_fetcher, config):
    events = []
    fetcher = make_fetcher(pancakes_html)
    pipeline = RecipeIngestionPipeline(config, fetcher, lambda e, d: events.append((e, d)))

    recipe = pipeline.ingest(PANCAKES_URL)

    assert fetcher.calls == [PANCAKES_URL]
    assert recipe.title == "Pancakes"
    assert recipe.servings == 4
    assert recipe.source_url == PANCAKES_URL
    assert recipe.ingredients[0].items == [
        IngredientItem(name="Flour", quantity="2", unit="Cup"),
        IngredientItem(name="Salt", quantity="1", unit="tsp"),
    ]
    assert [step.text for step in recipe.instructions[0].steps] == ["Mix.", "Cook."]

    kinds = [event for event, _ in events]
    assert (EVENT_METHOD_DETECTED, EXTRACTION_JSONLD) in [
        (event, data.get("extraction_method")) for event, data in events
    ]
    assert kinds[-1] == EVENT_EXTRACTION_COMPLETE


def test_unscrapable_page_is_not_an_error(unscrapable_html, make_fetcher, config):
    events = []
    pipeline = RecipeIngestionPipeline(
        config, make_fetcher(unscrapable_html), lambda e, d: events.append((e, d))
    )

    recipe = pipeline.ingest("https://example.com/blog")

    assert recipe.title == DEFAULT_TITLE
    assert recipe.ingredients == []
    assert [step.text for step in recipe.instructions[0].steps] == [PLACEHOLDER_INSTRUCTION]
    assert events[0] == (EVENT_METHOD_DETECTED, {
        "extraction_method": EXTRACTION_HEURISTIC,
        "message": "No structured data found, using page heuristics",
    })


def test_single_jsonld_step_is_replaced_by_markup_steps(make_fetcher, config):
    body = """
    <ol>
      <li>Whisk the eggs with the milk in a large bowl.</li>
      <li>Heat the butter in a skillet over medium heat.</li>
      <li>Cook the omelette until the edges are set.</li>
    </ol>
    """
    html = jsonld_page(
        {"@type": "Recipe", "name": "Omelette", "recipeInstructions": "Cook it."}, body
    )
    recipe = RecipeIngestionPipeline(config, make_fetcher(html)).ingest(
        "https://example.com/omelette"
    )

    assert recipe.step_count() == 3
    assert recipe.instructions[0].steps[0].text == "Whisk the eggs with the milk in a large bowl."


def test_jsonld_recipe_gets_video_from_markup(make_fetcher, config):
    body = '<iframe src="//player.vimeo.com/video/42"></iframe>'
    html = jsonld_page({"@type": "Recipe", "name": "Ramen"}, body)

    recipe = RecipeIngestionPipeline(config, make_fetcher(html)).ingest("https://example.com/ramen")

    assert recipe.video_url == "https://player.vimeo.com/video/42"


def test_channel_link_in_footer_is_not_a_video(make_fetcher, config):
    body = '<footer><a href="https://www.youtube.com/@myfoodblog">Follow us</a></footer>'
    html = jsonld_page({"@type": "Recipe", "name": "Ramen"}, body)

    recipe = RecipeIngestionPipeline(config, make_fetcher(html)).ingest("https://example.com/ramen")

    assert recipe.video_url is None


def test_heuristic_page(carrot_cake_html, make_fetcher, config):
    recipe = RecipeIngestionPipeline(config, make_fetcher(carrot_cake_html)).ingest(
        "https://example.com/carrot-cake"
    )

    assert [s.section_name for s in recipe.ingredients] == ["Filling", "Icing"]
    assert recipe.source_url == "https://example.com/carrot-cake"


def test_fetch_failure_propagates(failing_fetcher, config):
    with pytest.raises(ScrapeFailed) as exc_info:
        RecipeIngestionPipeline(config, failing_fetcher).ingest(PANCAKES_URL)
    assert str(exc_info.value) == SCRAPE_FAILED_MESSAGE


class _TimeoutSession:
    max_redirects = None

    def get(self, url, **kwargs):
        raise requests.exceptions.Timeout("read timed out")

    def close(self):
        pass


def test_fetch_timeout_raises_scrape_failed(monkeypatch):
    monkeypatch.setattr(scraper, "_create_session", lambda config: _TimeoutSession())
    pipeline = RecipeIngestionPipeline(IngestConfig(timeout=1))

    with pytest.raises(ScrapeFailed) as exc_info:
        pipeline.ingest(PANCAKES_URL)

    assert str(exc_info.value) == SCRAPE_FAILED_MESSAGE
    assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)


class _ChallengeSession(_TimeoutSession):
    def get(self, url, **kwargs):
        raise CloudflareChallengeError("Detected a Cloudflare version 2 challenge")


def test_cloudflare_challenge_raises_scrape_failed(monkeypatch):
    monkeypatch.setattr(scraper, "_create_session", lambda config: _ChallengeSession())
    pipeline = RecipeIngestionPipeline(IngestConfig())

    with pytest.raises(ScrapeFailed) as exc_info:
        pipeline.ingest(PANCAKES_URL)

    assert str(exc_info.value) == SCRAPE_FAILED_MESSAGE
    assert isinstance(exc_info.value.__cause__, CloudflareChallengeError)


def test_unexpected_fetcher_error_becomes_scrape_failed(config):
    def fetcher(url, config):
        raise OSError("disk full")

    with pytest.raises(ScrapeFailed) as exc_info:
        RecipeIngestionPipeline(config, fetcher).ingest(PANCAKES_URL)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_unexpected_extraction_error_becomes_scrape_failed(pancakes_html, make_fetcher, config,
                                                           monkeypatch):
    pipeline = RecipeIngestionPipeline(config, make_fetcher(pancakes_html))

    def boom(soup, url=None):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(pipeline.jsonld_parser, "parse", boom)

    with pytest.raises(ScrapeFailed) as exc_info:
        pipeline.ingest(PANCAKES_URL)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_async_ingest(pancakes_html, make_fetcher, config):
    pipeline = RecipeIngestionPipeline(config, make_fetcher(pancakes_html))
    recipe = asyncio.run(pipeline.async_ingest(PANCAKES_URL))
    assert recipe.title == "Pancakes"
