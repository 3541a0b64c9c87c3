"""Data structures representing crawl requests, pages and compiled documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urldefrag, urlparse

LOGGER = logging.getLogger(__name__)

MAX_PAGES_CAP = 50


@dataclass(frozen=True, slots=True)
class CrawlRequest:
    """Input of a single crawl run."""

    start_url: str
    max_pages: int = 5
    existing_title: Optional[str] = None

    def __post_init__(self) -> None:
        parsed = urlparse(self.start_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"start_url must be an absolute http(s) URL: {self.start_url!r}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.max_pages > MAX_PAGES_CAP:
            LOGGER.warning(
                "max_pages=%d exceeds cap; clamping to %d", self.max_pages, MAX_PAGES_CAP
            )
            object.__setattr__(self, "max_pages", MAX_PAGES_CAP)
        object.__setattr__(self, "start_url", urldefrag(self.start_url).url)


@dataclass(slots=True)
class FetchSuccess:
    """A page that was fetched and yielded main content."""

    url: str
    title: str
    content_markup: str
    raw_html: str
    image: Optional[str] = None
    final_url: Optional[str] = None

    @property
    def page_url(self) -> str:
        """URL the page was served from, after redirects."""
        return self.final_url or self.url


@dataclass(slots=True)
class FetchFailure:
    """A page that could not be fetched or had no usable content."""

    url: str
    reason: str


FetchOutcome = Union[FetchSuccess, FetchFailure]


@dataclass(slots=True)
class PageRecord:
    """One successfully processed page, in visitation order."""

    url: str
    title: str
    content_markup: str
    image: Optional[str] = None


@dataclass(slots=True)
class CrawlFailure:
    """Failure log entry for a URL that was attempted but not visited."""

    url: str
    reason: str


@dataclass(slots=True)
class IndexEntry:
    """Word span of one page inside the aggregated content.

    ``start_word`` is inclusive and ``end_word`` exclusive, both 0-based
    offsets into ``content.split()``.
    """

    page_number: int
    start_word: int
    end_word: int
    title: str
    url: str = ""

    @property
    def length_words(self) -> int:
        return self.end_word - self.start_word

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "start_word": self.start_word,
            "end_word": self.end_word,
            "length_words": self.length_words,
            "title": self.title,
            "url": self.url,
        }


@dataclass(slots=True)
class AggregatedDocument:
    """Compiled output of one crawl, handed to the storage collaborator."""

    url: str
    title: str
    content: str = ""
    image: Optional[str] = None
    index_entries: List[IndexEntry] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)
    pages: List[PageRecord] = field(default_factory=list)
    failures: List[CrawlFailure] = field(default_factory=list)
    description: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "image": self.image,
            "description": self.description,
            "index": [entry.to_dict() for entry in self.index_entries],
            "pages": [
                {"url": page.url, "title": page.title, "section": section}
                for page, section in zip(self.pages, self.sections)
            ],
            "failures": [
                {"url": failure.url, "reason": failure.reason}
                for failure in self.failures
            ],
            "stats": self.stats,
        }
