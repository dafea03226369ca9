"""Shared fixtures: inline recipe pages and fake fetchers."""
from __future__ import annotations

import json

import pytest

from recipe_ingest.config import IngestConfig
from recipe_ingest.exceptions import ScrapeFailed

PANCAKES_URL = "https://example.com/recipes/pancakes"


def jsonld_page(data, body: str = "") -> str:
    """A page whose only recipe content is a JSON-LD block."""
    return (
        "<html><head>"
        f'<script type="application/ld+json">{json.dumps(data)}</script>'
        f"</head><body>{body}</body></html>"
    )


@pytest.fixture
def pancakes_data():
    return {
        "@context": "https://schema.org",
        "@type": "Recipe",
        "name": "Pancakes",
        "recipeIngredient": ["2 cups flour", "1 tsp salt"],
        "recipeInstructions": ["Mix.", "Cook."],
        "recipeYield": "4 servings",
    }


@pytest.fixture
def pancakes_html(pancakes_data):
    return jsonld_page(pancakes_data)


@pytest.fixture
def carrot_cake_html():
    return """
<html><head><title>Carrot Cake | My Blog</title></head>
<body>
<nav><ul><li>Home</li><li>Recipes</li></ul></nav>
<article>
<h1>Carrot Cake</h1>
<p class="recipe-description">A moist cake with a tangy icing.</p>
<span class="recipe-cook-time">PT45M</span>
<div class="recipe-servings">Serves 12</div>
<h3>Filling</h3>
<ul><li>2 cups grated carrots</li><li>1 cup sugar</li></ul>
<h3>Icing</h3>
<ul><li>8 oz cream cheese</li><li>2 cups powdered sugar</li></ul>
<h2>Instructions</h2>
<ol>
<li>Preheat the oven to 350 degrees and grease the pan.</li>
<li>Mix the carrots with the sugar in a large bowl.</li>
<li>Bake for 45 minutes until a toothpick comes out clean.</li>
</ol>
</article>
<footer><p>Subscribe to our newsletter</p></footer>
</body></html>
"""


@pytest.fixture
def unscrapable_html():
    return "<html><head><title>Blog</title></head><body><p>Welcome to my blog</p></body></html>"


@pytest.fixture
def config():
    return IngestConfig(use_cloudscraper=False)


@pytest.fixture
def make_fetcher():
    """Build a fetcher returning fixed HTML and recording requested URLs."""

    def factory(html: str):
        calls = []

        def fetcher(url: str, config: IngestConfig) -> str:
            calls.append(url)
            return html

        fetcher.calls = calls
        return fetcher

    return factory


@pytest.fixture
def failing_fetcher():
    def fetcher(url: str, config: IngestConfig) -> str:
        raise ScrapeFailed()

    return fetcher
