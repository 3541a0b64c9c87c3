"""Main-content extraction for documentation pages."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, Tag
from soupsieve import SelectorSyntaxError

from .config import CHROME_SELECTORS, MAIN_CONTENT_SELECTORS
from .document import FetchFailure
from .markdown import html_to_markdown

LOGGER = logging.getLogger(__name__)

NO_CONTENT_REASON = "no main content"
UNTITLED = "Untitled"


@dataclass(slots=True)
class ExtractedPage:
    """Content pulled out of one page before the cover image is fetched."""

    title: str
    content_markup: str
    image_url: Optional[str] = None


def parse_html(raw_html: str) -> BeautifulSoup:
    return BeautifulSoup(raw_html or "", "html.parser")


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_title(soup: BeautifulSoup) -> str:
    """First non-empty ``<title>``, then ``<h1>``, else ``"Untitled"``."""
    for name in ("title", "h1"):
        for el in soup.find_all(name):
            text = _clean_text(el.get_text(" "))
            if text:
                return text
    return UNTITLED


def select_main_content(
    soup: BeautifulSoup, selectors: Sequence[str] = MAIN_CONTENT_SELECTORS
) -> Tag:
    for selector in selectors:
        try:
            match = soup.select_one(selector)
        except SelectorSyntaxError as exc:
            LOGGER.warning("Skipping invalid content selector %r: %s", selector, exc)
            continue
        if match is not None:
            LOGGER.debug("Main content matched selector %r", selector)
            return match
    return soup.body or soup


def strip_chrome(region: Tag, selectors: Sequence[str] = CHROME_SELECTORS) -> Tag:
    """Remove navigation, sidebars and other page chrome inside ``region``."""
    for comment in region.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for selector in selectors:
        try:
            matches = region.select(selector)
        except SelectorSyntaxError as exc:
            LOGGER.warning("Skipping invalid chrome selector %r: %s", selector, exc)
            continue
        for el in matches:
            # An ancestor may already have been removed along with this node.
            if el.decomposed:
                continue
            el.decompose()
    return region


def resolve_base_url(soup: BeautifulSoup, page_url: str) -> str:
    """Base for relative links: ``<base href>`` if present, else ``page_url``."""
    base = soup.find("base", href=True)
    if base is None:
        return page_url
    href = base["href"].strip()
    if not href:
        return page_url
    try:
        return urljoin(page_url, href)
    except ValueError:
        LOGGER.debug("Ignoring malformed <base href=%r> on %s", href, page_url)
        return page_url


def _image_source(img: Tag) -> Optional[str]:
    for attr in ("src", "data-src"):
        value = (img.get(attr) or "").strip()
        if value:
            return value
    return None


def find_cover_image_url(
    soup: BeautifulSoup, region: Tag, page_url: str
) -> Optional[str]:
    """Return the first image of the page as an absolute URL.

    The selected region is searched first (before chrome is stripped), then
    the whole body.
    """
    scopes: List[Tag] = [region]
    if soup.body is not None and soup.body is not region:
        scopes.append(soup.body)
    for scope in scopes:
        for img in scope.find_all("img"):
            src = _image_source(img)
            if not src:
                continue
            if src.startswith("data:"):
                return src
            try:
                return urljoin(page_url, src)
            except ValueError:
                continue
    return None


def _absolutize_links(region: Tag, page_url: str) -> None:
    for attr, name in (("href", "a"), ("src", "img")):
        for el in region.find_all(name):
            value = el.get(attr)
            if not value or value.startswith(("#", "data:", "mailto:", "javascript:")):
                continue
            try:
                el[attr] = urljoin(page_url, value)
            except ValueError:
                continue


def _has_content(region: Tag) -> bool:
    if region.get_text(strip=True):
        return True
    return region.find("img") is not None


def extract_page(
    raw_html: str,
    page_url: str,
    *,
    main_selectors: Sequence[str] = MAIN_CONTENT_SELECTORS,
    chrome_selectors: Sequence[str] = CHROME_SELECTORS,
) -> Union[ExtractedPage, FetchFailure]:
    """Extract title, markdown content and cover image URL from a page.

    ``page_url`` is the URL the page was served from (after redirects).
    """
    soup = parse_html(raw_html)
    link_base = resolve_base_url(soup, page_url)
    title = extract_title(soup)
    region = select_main_content(soup, main_selectors)
    image_url = find_cover_image_url(soup, region, link_base)

    strip_chrome(region, chrome_selectors)
    if not _has_content(region):
        return FetchFailure(url=page_url, reason=NO_CONTENT_REASON)

    _absolutize_links(region, link_base)
    content = html_to_markdown(region)
    if not content.strip():
        return FetchFailure(url=page_url, reason=NO_CONTENT_REASON)

    return ExtractedPage(title=title, content_markup=content, image_url=image_url)
