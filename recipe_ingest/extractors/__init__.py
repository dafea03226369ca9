"""Extractors package."""
from .scraper import fetch_html, parse_html, validate_url

__all__ = ["fetch_html", "parse_html", "validate_url"]
