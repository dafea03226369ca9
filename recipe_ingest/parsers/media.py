"""
Image and video discovery for recipe pages.

Structured data sometimes carries the recipe image and video, but most
pages only expose them through markup. These helpers pick the best URL from
JSON-LD values and fall back to ranked selector lists over the document.
"""
from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..const import MIN_IMAGE_DIMENSION

_LOGGER = logging.getLogger(__name__)

IMAGE_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
    ".wprm-recipe-image img",
    ".recipe-image img",
    ".wp-recipe-card img",
    ".recipe-hero img",
    ".recipe-photo img",
    ".featured-image img",
    'img[alt*="recipe"]',
    'img[class*="recipe"]',
    'img[id*="recipe"]',
    ".entry-content img",
    ".post-content img",
    "article img",
)

STEP_IMAGE_SELECTORS = (
    ".step-{n} img",
    '[data-step="{n}"] img',
    ".instruction-{n} img",
)

IMAGE_SOURCE_ATTRIBUTES = ("content", "src", "data-src", "data-lazy-src", "data-original")

# Links to a single video, not to a channel or profile page
VIDEO_LINK_RE = re.compile(
    r"youtube(?:-nocookie)?\.com/(?:watch\?(?:[^#]*&)?v=[\w-]+|embed/[\w-]+|shorts/[\w-]+)"
    r"|youtu\.be/[\w-]+"
    r"|vimeo\.com/(?:video/)?\d+"
    r"|dailymotion\.com/(?:embed/)?video/\w+"
    r"|dai\.ly/\w+",
    re.IGNORECASE,
)

_HIGH_RES_HINTS = ("1080", "large", "full")
_IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|avif)(\?|$)", re.IGNORECASE)
_IMAGE_HINT_RE = re.compile(r"image|photo|picture|wp-content|recipe|food|dish", re.IGNORECASE)
_PLACEHOLDER_HINTS = ("placeholder", "blank", "spacer", "1x1", "pixel")
_NON_RECIPE_HINTS = ("logo", "icon", "avatar", "gravatar", "sprite")
_ADVERTISEMENT_RE = re.compile(
    r"knife|knives|utensil|cookware|equipment|product|advertisement|\bad-|promo|"
    r"affiliate|sponsor|\bbuy\b|\bshop\b|\bsale\b|\bdeal\b|discount|price",
    re.IGNORECASE,
)


def _first_url(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return url.strip() if isinstance(url, str) and url.strip() else None
    return None


def pick_jsonld_image(image: Any) -> str | None:
    """Choose the image from a JSON-LD ``image`` value.

    Accepts a string, an ImageObject or a list of either. In a list, the
    first URL hinting at a high resolution (1080, large, full) wins,
    otherwise the first URL. SVG data URIs are rejected.
    """
    url = None
    if isinstance(image, list):
        candidates = [u for u in (_first_url(i) for i in image) if u]
        url = next(
            (c for c in candidates if any(h in c.lower() for h in _HIGH_RES_HINTS)),
            candidates[0] if candidates else None,
        )
    else:
        url = _first_url(image)

    if url and url.startswith("data:image/svg+xml"):
        _LOGGER.debug("Rejected SVG data URI image")
        return None
    return url


def pick_jsonld_video(video: Any) -> str | None:
    """Video URL from a JSON-LD ``video`` object or list (contentUrl, then embedUrl)."""
    entries = video if isinstance(video, list) else [video]
    for entry in entries:
        if isinstance(entry, str) and entry.strip():
            return normalize_media_url(entry.strip())
        if isinstance(entry, dict):
            for key in ("contentUrl", "embedUrl"):
                url = entry.get(key)
                if isinstance(url, str) and url.strip():
                    return normalize_media_url(url.strip())
    return None


def normalize_media_url(url: str, base_url: str | None = None) -> str:
    """Give protocol-relative URLs https: and resolve relative ones."""
    if url.startswith("//"):
        return f"https:{url}"
    if base_url and not url.startswith(("http://", "https://")):
        return urljoin(base_url, url)
    return url


def is_valid_image_url(src: str) -> bool:
    """Reject data URIs and placeholders; require an image-like URL."""
    if not src or src.startswith("data:"):
        return False
    lowered = src.lower()
    if any(hint in lowered for hint in _PLACEHOLDER_HINTS):
        return False
    return bool(_IMAGE_EXTENSION_RE.search(src) or _IMAGE_HINT_RE.search(src))


def is_valid_recipe_image(src: str, alt: str = "") -> bool:
    """Reject logos, icons, avatars and advertisement/product images."""
    if not is_valid_image_url(src):
        return False
    lowered = src.lower()
    if any(hint in lowered for hint in _NON_RECIPE_HINTS):
        return False
    if _ADVERTISEMENT_RE.search(src) or (alt and _ADVERTISEMENT_RE.search(alt)):
        _LOGGER.debug("Filtered out advertisement image: %s", src)
        return False
    return True


def _is_too_small(element: Tag) -> bool:
    for attribute in ("width", "height"):
        value = element.get(attribute)
        if value is None:
            continue
        match = re.match(r"\s*(\d+)", str(value))
        if match and int(match.group(1)) < MIN_IMAGE_DIMENSION:
            return True
    return False


def _image_source(element: Tag) -> str | None:
    for attribute in IMAGE_SOURCE_ATTRIBUTES:
        value = element.get(attribute)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def find_image(soup: BeautifulSoup, base_url: str | None = None) -> str | None:
    """Find the main recipe image in the document.

    Tries Open Graph and Twitter card metadata, then recipe image
    selectors, then any plausible ``<img>`` on the page. Relative URLs are
    resolved against ``base_url``.
    """
    for selector in IMAGE_SELECTORS:
        for element in soup.select(selector):
            src = _image_source(element)
            if not src or element.name == "meta" and src.startswith("data:"):
                continue
            if element.name != "meta":
                alt = element.get("alt") or ""
                if not is_valid_recipe_image(src, alt) or _is_too_small(element):
                    continue
            url = normalize_media_url(src, base_url)
            _LOGGER.debug("Found image with selector %r: %s", selector, url)
            return url

    for element in soup.find_all("img"):
        src = _image_source(element)
        if src and is_valid_recipe_image(src, element.get("alt") or "") \
                and not _is_too_small(element):
            url = normalize_media_url(src, base_url)
            _LOGGER.debug("Found image from page images: %s", url)
            return url

    return None


def find_video(soup: BeautifulSoup) -> str | None:
    """Find an embedded or linked recipe video.

    Recognizes YouTube, Vimeo and Dailymotion iframes (``src`` or lazy
    ``data-src``) and links, then falls back to ``<video>`` sources. Only
    URLs of a single video count; channel and profile links are ignored.
    Pass a document stripped with content_copy() to skip site chrome.
    """
    for iframe in soup.find_all("iframe"):
        for attribute in ("src", "data-src"):
            src = iframe.get(attribute)
            if isinstance(src, str) and VIDEO_LINK_RE.search(src):
                return normalize_media_url(src.strip())

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if VIDEO_LINK_RE.search(href):
            return normalize_media_url(href.strip())

    for element in soup.select("video, video source"):
        src = element.get("src")
        if isinstance(src, str) and src.strip():
            return normalize_media_url(src.strip())

    return None


def find_step_images(
    soup: BeautifulSoup, step_count: int, base_url: str | None = None
) -> list[str | None]:
    """Image URL per instruction step, or None where no image is found.

    Step N's image comes from a step-numbered container (``.step-N``,
    ``[data-step="N"]``, ``.instruction-N``) or is the N-th image inside
    ``.wprm-recipe-instruction`` blocks.
    """
    wprm_images = [
        img for img in soup.select(".wprm-recipe-instruction img")
        if _image_source(img)
    ]
    images: list[str | None] = []

    for index in range(step_count):
        number = index + 1
        url = None
        for template in STEP_IMAGE_SELECTORS:
            element = soup.select_one(template.format(n=number))
            src = _image_source(element) if element is not None else None
            if src and is_valid_recipe_image(src, element.get("alt") or ""):
                url = normalize_media_url(src, base_url)
                break
        if url is None and index < len(wprm_images):
            src = _image_source(wprm_images[index])
            if src and is_valid_recipe_image(src, wprm_images[index].get("alt") or ""):
                url = normalize_media_url(src, base_url)
        images.append(url)

    return images
