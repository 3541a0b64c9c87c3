"""Detection of the "next" page in a linear documentation chain.

Candidates are proposed by an ordered list of strategies. The first
strategy that yields at least one acceptable URL wins:

1. explicit next signals (``rel="next"``, footer-next classes, class or
   aria-label containing "next"),
2. an anchor whose text is exactly "Next",
3. the anchor that follows the current page inside a navigation container.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from .config import (
    ASSET_EXTENSIONS,
    NAV_CONTAINER_SELECTORS,
    NEXT_LINK_SELECTORS,
    NEXT_LINK_TEXTS,
)
from .extractor import resolve_base_url

LOGGER = logging.getLogger(__name__)


def _origin(parts) -> Tuple[str, str]:
    return parts.scheme.lower(), parts.netloc.lower()


def _trim_path(path: str) -> str:
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path or "/"


def comparison_key(url: str) -> str:
    """URL with query, fragment and trailing slash dropped."""
    parts = urlsplit(url)
    scheme, netloc = _origin(parts)
    return urlunsplit((scheme, netloc, _trim_path(parts.path), "", ""))


class _CandidateFilter:
    """Resolves anchors against the page URL and rejects non-successors."""

    def __init__(self, base_url: str, link_base: Optional[str] = None) -> None:
        self.base_url = base_url
        self.link_base = link_base or base_url
        base_parts = urlsplit(base_url)
        self.origin = _origin(base_parts)
        self.base_key = comparison_key(base_url)
        self.base_path = _trim_path(base_parts.path)

    def resolve(self, el: Tag) -> Optional[str]:
        href = (el.get("href") or "").strip()
        if not href:
            return None
        try:
            absolute = urldefrag(urljoin(self.link_base, href)).url
            parts = urlsplit(absolute)
            # Accessing .port validates it and raises on garbage like ":abc".
            _ = parts.port
        except ValueError:
            LOGGER.debug("Skipping malformed link %r on %s", href, self.base_url)
            return None
        return absolute

    def path_of(self, el: Tag) -> Optional[str]:
        absolute = self.resolve(el)
        if absolute is None:
            return None
        return _trim_path(urlsplit(absolute).path)

    def accept(self, el: Tag) -> Optional[str]:
        if el.has_attr("hreflang"):
            return None
        absolute = self.resolve(el)
        if absolute is None:
            return None
        parts = urlsplit(absolute)
        if parts.scheme.lower() not in ("http", "https"):
            return None
        if _origin(parts) != self.origin:
            return None
        if comparison_key(absolute) == self.base_key:
            return None
        if parts.path.lower().endswith(ASSET_EXTENSIONS):
            return None
        return absolute


Strategy = Callable[[BeautifulSoup, _CandidateFilter], List[str]]


def _collect(elements: Iterable[Tag], candidates: _CandidateFilter) -> List[str]:
    found: List[str] = []
    for el in elements:
        url = candidates.accept(el)
        if url and url not in found:
            found.append(url)
    return found


def _tier_explicit_next(soup: BeautifulSoup, candidates: _CandidateFilter) -> List[str]:
    return _collect(soup.select(", ".join(NEXT_LINK_SELECTORS)), candidates)


def _tier_next_text(soup: BeautifulSoup, candidates: _CandidateFilter) -> List[str]:
    anchors = [
        a
        for a in soup.find_all("a", href=True)
        if a.get_text(" ", strip=True).lower() in NEXT_LINK_TEXTS
    ]
    return _collect(anchors, candidates)


def _tier_navigation_order(
    soup: BeautifulSoup, candidates: _CandidateFilter
) -> List[str]:
    selector = ", ".join(f"{container} a[href]" for container in NAV_CONTAINER_SELECTORS)
    anchors = soup.select(selector)

    current_index = None
    for index, anchor in enumerate(anchors):
        if candidates.path_of(anchor) == candidates.base_path:
            current_index = index
            break
    if current_index is None:
        return []

    for anchor in anchors[current_index + 1 :]:
        url = candidates.accept(anchor)
        if url:
            return [url]
    return []


STRATEGIES: Sequence[Tuple[str, Strategy]] = (
    ("explicit-next", _tier_explicit_next),
    ("next-text", _tier_next_text),
    ("navigation-order", _tier_navigation_order),
)


def find_successors(
    base_url: str,
    raw_html: str,
    *,
    strategies: Sequence[Tuple[str, Strategy]] = STRATEGIES,
) -> List[str]:
    """Return candidate next-page URLs for the page at ``base_url``.

    ``base_url`` is the URL the page was served from; a ``<base href>`` in
    the page takes over link resolution but not self-link detection. An
    empty list means the chain ends at this page.
    """
    soup = BeautifulSoup(raw_html or "", "html.parser")
    candidates = _CandidateFilter(base_url, resolve_base_url(soup, base_url))
    for name, strategy in strategies:
        found = strategy(soup, candidates)
        if found:
            LOGGER.debug("Successors for %s via %s: %s", base_url, name, found)
            return found
    LOGGER.debug("No successor found for %s", base_url)
    return []
