"""
Web scraper utilities for fetching recipe pages.

This module handles the single outbound HTML fetch of an ingestion: URL
validation, a browser-like session (cloudscraper or plain requests), and
content-type and size limits on the streamed response. Every failure is
raised as ScrapeFailed with the underlying cause chained and logged.
"""
from __future__ import annotations

import ipaddress
import logging
import time
from urllib.parse import urlparse

import cloudscraper
import requests
from cloudscraper.exceptions import CaptchaException, CloudflareException
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from ..config import IngestConfig
from ..exceptions import ScrapeFailed

_LOGGER = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
ALLOWED_CONTENT_TYPES = ("text/html", "application/xhtml", "application/xml")
CHUNK_SIZE = 8192


def browser_headers(config: IngestConfig) -> dict[str, str]:
    """Headers sent with every page request."""
    return {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


def validate_url(url: str) -> str:
    """Check that a URL is safe to fetch.

    Args:
        url: The recipe page URL

    Returns:
        The stripped URL

    Raises:
        ScrapeFailed: If the URL is empty, not http(s), or points at a
            literal private, loopback or link-local address
    """
    if not url or not url.strip():
        _LOGGER.error("Rejected empty URL")
        raise ScrapeFailed()

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.hostname:
        _LOGGER.error("Rejected URL with unsupported scheme or no host: %s", url)
        raise ScrapeFailed()

    try:
        address = ipaddress.ip_address(parsed.hostname)
    except ValueError:
        return url

    if address.is_private or address.is_loopback or address.is_link_local \
            or address.is_reserved or address.is_multicast or address.is_unspecified:
        _LOGGER.error("Rejected URL pointing at a non-public address: %s", url)
        raise ScrapeFailed()
    return url


def _create_session(config: IngestConfig) -> requests.Session:
    if config.use_cloudscraper:
        _LOGGER.debug("Using cloudscraper session")
        session = cloudscraper.create_scraper(
            browser={
                'browser': 'chrome',
                'platform': 'windows',
                'desktop': True
            }
        )
    else:
        session = requests.Session()
    session.headers.update(browser_headers(config))
    session.max_redirects = config.max_redirects
    return session


def _download(session: requests.Session, url: str, config: IngestConfig) -> bytes:
    """Fetch the URL once, enforcing content type, size and a total deadline.

    Raises:
        requests.exceptions.RequestException: On transport or HTTP errors
        ValueError: If the response is not HTML or too large
    """
    deadline = time.monotonic() + config.timeout
    response = session.get(
        url,
        timeout=config.timeout,
        allow_redirects=True,
        stream=True
    )
    try:
        response.raise_for_status()

        content_type = response.headers.get('content-type', '').lower()
        if not any(allowed in content_type for allowed in ALLOWED_CONTENT_TYPES):
            _LOGGER.warning("Invalid content type for %s: %s", url, content_type)
            raise ValueError(f"Invalid content type: {content_type}")

        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() \
                and int(content_length) > config.max_response_size:
            _LOGGER.warning("Response too large for %s: %s bytes", url, content_length)
            raise ValueError(f"Response size ({content_length} bytes) exceeds maximum")

        content = bytearray()
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            content.extend(chunk)
            if len(content) > config.max_response_size:
                _LOGGER.warning("Response exceeded size limit while downloading from %s", url)
                raise ValueError("Response size exceeds maximum")
            if time.monotonic() > deadline:
                raise requests.exceptions.Timeout(
                    f"Download of {url} exceeded {config.timeout}s")
        return bytes(content)
    finally:
        response.close()


def fetch_html(url: str, config: IngestConfig) -> bytes:
    """Fetch a recipe page with a single attempt and no retry.

    Args:
        url: The URL of the recipe page
        config: Timeout, size, redirect and session settings

    Returns:
        The raw HTML body

    Raises:
        ScrapeFailed: If the URL is rejected or the page cannot be fetched
    """
    url = validate_url(url)
    _LOGGER.info("Fetching recipe from %s", url)

    session = _create_session(config)
    try:
        html = _download(session, url, config)
    except requests.exceptions.Timeout as err:
        _LOGGER.error("Timed out fetching %s: %s", url, err)
        raise ScrapeFailed() from err
    except requests.exceptions.RequestException as err:
        _LOGGER.error("Failed to fetch %s: %s", url, err)
        raise ScrapeFailed() from err
    except (CloudflareException, CaptchaException) as err:
        _LOGGER.error("Anti-bot challenge not solved for %s: %s", url, err)
        raise ScrapeFailed() from err
    except ValueError as err:
        _LOGGER.error("Rejected response from %s: %s", url, err)
        raise ScrapeFailed() from err
    except Exception as err:
        _LOGGER.error("Unexpected error fetching %s: %s", url, err, exc_info=True)
        raise ScrapeFailed() from err
    finally:
        session.close()

    _LOGGER.debug("Successfully fetched %d bytes from %s", len(html), url)
    return html


def parse_html(html: bytes | str) -> BeautifulSoup:
    """Parse a fetched page with the standard library HTML parser.

    Raises:
        ScrapeFailed: If the markup cannot be parsed
    """
    try:
        return BeautifulSoup(html, features="html.parser")
    except (ParserRejectedMarkup, AssertionError) as err:
        _LOGGER.error("Failed to parse HTML: %s", err)
        raise ScrapeFailed() from err
