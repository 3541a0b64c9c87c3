"""Crawl settings and the selector tables that drive extraction heuristics."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# Main content regions, in priority order. First selector with a match wins.
MAIN_CONTENT_SELECTORS: List[str] = [
    "[role='main']",
    "main",
    ".main-content",
    ".content",
    ".markdown-body",
    ".md-content",
    ".docs-content",
    ".doc-content",
    ".theme-doc-markdown",
    ".rst-content",
    ".prose",
    "article",
    "#content",
    "#main-content",
    "#main",
    ".post-content",
    ".entry-content",
    "[data-docs-content]",
]

# Elements removed from the selected region before conversion.
CHROME_SELECTORS: List[str] = [
    "nav",
    "header",
    "footer",
    "aside",
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "form",
    "svg",
    "[role='navigation']",
    "[role='banner']",
    "[role='contentinfo']",
    "[role='complementary']",
    "[role='skip']",
    ".sidebar",
    "#sidebar",
    "[class*='sidebar']",
    ".skip-link",
    ".skip-to-content",
    "a[href='#content']",
    "a[href='#main-content']",
    "[aria-hidden='true']",
    "[hidden]",
    ".headerlink",
]

# High-confidence "next page" signals.
NEXT_LINK_SELECTORS: List[str] = [
    "a[rel~='next']",
    "link[rel~='next']",
    "a[class*='footer__link--next']",
    "a.pagination-nav__link--next",
    "a[class*='next' i]",
    "a[aria-label*='next' i]",
]

NEXT_LINK_TEXTS: Tuple[str, ...] = ("next",)

# Containers whose anchor order mirrors the documentation reading order.
NAV_CONTAINER_SELECTORS: List[str] = [
    "nav",
    "[role='navigation']",
    ".site-nav",
    ".sidebar",
    "#sidebar",
    "[class*='sidebar']",
]

ASSET_EXTENSIONS: Tuple[str, ...] = (
    ".pdf",
    ".zip",
    ".gz",
    ".tar",
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".css",
    ".js",
    ".ico",
    ".svg",
)

GENERIC_PATH_NAMES: Tuple[str, ...] = ("docs", "documentation", "index", "home")

DEFAULT_TITLE = "Untitled Documentation"


@dataclass
class CrawlSettings:
    """Runtime knobs for a crawl.

    Selector tables are plain data so they can be tuned per deployment
    without touching the crawl loop.
    """

    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 20.0
    image_timeout: float = 10.0
    summary_timeout: float = 30.0
    capture_images: bool = True
    main_selectors: List[str] = field(default_factory=lambda: list(MAIN_CONTENT_SELECTORS))
    chrome_selectors: List[str] = field(default_factory=lambda: list(CHROME_SELECTORS))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_settings(**overrides) -> CrawlSettings:
    """Build settings from ``DOCCHAIN_*`` environment variables.

    Environment variables are read at call time so late ``.env`` loading and
    test monkeypatching both work. Keyword overrides that are not ``None``
    win over the environment.
    """
    settings = CrawlSettings(
        user_agent=os.getenv("DOCCHAIN_USER_AGENT") or DEFAULT_USER_AGENT,
        request_timeout=_env_float("DOCCHAIN_REQUEST_TIMEOUT", 20.0),
        image_timeout=_env_float("DOCCHAIN_IMAGE_TIMEOUT", 10.0),
        summary_timeout=_env_float("DOCCHAIN_SUMMARY_TIMEOUT", 30.0),
        capture_images=_env_bool("DOCCHAIN_CAPTURE_IMAGES", True),
    )
    main_selectors = _env_list("DOCCHAIN_MAIN_SELECTORS")
    if main_selectors:
        settings.main_selectors = main_selectors

    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(settings, key):
            raise TypeError(f"Unknown crawl setting: {key}")
        setattr(settings, key, value)
    return settings
