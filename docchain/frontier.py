"""Crawl loop that follows a documentation site's chain of next pages."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, List, Optional, Set

import httpx

from .aggregate import aggregate
from .builder import build_page_outcome
from .config import CrawlSettings, load_settings
from .document import (
    AggregatedDocument,
    CrawlFailure,
    CrawlRequest,
    FetchFailure,
    PageRecord,
)
from .fetcher import build_client
from .successors import find_successors
from .summarize import Summarizer, summarize_document
from .titles import derive_title

LOGGER = logging.getLogger(__name__)


class Frontier:
    """Queue plus attempted/visited bookkeeping for a single crawl.

    ``attempted`` holds every URL ever dequeued; ``visited`` the subset
    that produced a page. ``len(visited)`` never exceeds ``max_pages``.
    """

    def __init__(self, start_url: str, max_pages: int) -> None:
        self.max_pages = max_pages
        self.queue: Deque[str] = deque([start_url])
        self.attempted: Set[str] = set()
        self.visited: List[str] = []

    @property
    def has_capacity(self) -> bool:
        return len(self.visited) < self.max_pages

    def next_url(self) -> Optional[str]:
        """Pop the next URL that was never attempted, marking it attempted."""
        while self.queue:
            url = self.queue.popleft()
            if url in self.attempted:
                continue
            self.attempted.add(url)
            return url
        return None

    def claim(self, url: str) -> bool:
        """Mark a redirect target attempted; False if it already was."""
        if url in self.attempted:
            return False
        self.attempted.add(url)
        return True

    def mark_visited(self, url: str) -> None:
        self.visited.append(url)

    def enqueue(self, urls: List[str]) -> int:
        added = 0
        for url in urls:
            if url in self.attempted or url in self.queue:
                continue
            self.queue.append(url)
            added += 1
        return added


async def crawl_docs_async(
    request: CrawlRequest,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[CrawlSettings] = None,
    summarizer: Optional[Summarizer] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> AggregatedDocument:
    """
    Crawl the next-page chain starting at ``request.start_url``.

    Args:
        request: Start URL, page cap and optional existing title.
        client: Optional httpx client; one is created (and closed) if omitted.
        settings: Crawl settings; read from the environment if omitted.
        summarizer: Optional collaborator producing a short description.
        stop_event: When set, the crawl stops before the next page and the
            pages collected so far are compiled.

    Returns:
        AggregatedDocument. It is empty (``is_empty``) when no page could be
        retrieved; that is not an error.
    """
    settings = settings or load_settings()
    frontier = Frontier(request.start_url, request.max_pages)
    pages: List[PageRecord] = []
    failures: List[CrawlFailure] = []
    cover: Optional[str] = None

    LOGGER.info(
        "Starting crawl: %s (max_pages=%d)", request.start_url, request.max_pages
    )

    owns_client = client is None
    if client is None:
        client = build_client(settings)

    try:
        while frontier.has_capacity:
            if stop_event is not None and stop_event.is_set():
                LOGGER.info("Crawl stopped after %d page(s)", len(pages))
                break

            url = frontier.next_url()
            if url is None:
                break

            outcome = await build_page_outcome(
                client, url, settings, capture_image=cover is None
            )
            if isinstance(outcome, FetchFailure):
                LOGGER.warning("Failed: %s - %s", url, outcome.reason)
                failures.append(CrawlFailure(url=url, reason=outcome.reason))
                continue

            page_url = outcome.page_url
            if page_url != url and not frontier.claim(page_url):
                LOGGER.info("Skipping %s: redirects to already crawled %s", url, page_url)
                continue

            frontier.mark_visited(page_url)
            pages.append(
                PageRecord(
                    url=page_url,
                    title=outcome.title,
                    content_markup=outcome.content_markup,
                    image=outcome.image,
                )
            )
            if cover is None and outcome.image:
                cover = outcome.image
            LOGGER.debug(
                "Crawled %s (%d/%d)", page_url, len(frontier.visited), request.max_pages
            )

            if frontier.has_capacity:
                successors = find_successors(page_url, outcome.raw_html)
                frontier.enqueue(successors)
    finally:
        if owns_client:
            await client.aclose()

    title = derive_title(request.start_url, request.existing_title)
    document = aggregate(pages, start_url=request.start_url, title=title)
    document.failures = failures
    document.stats.update(
        {
            "pages_visited": len(frontier.visited),
            "pages_attempted": len(frontier.attempted),
            "pages_failed": len(failures),
        }
    )

    if not document.is_empty:
        document.description = await summarize_document(
            summarizer,
            document.content,
            len(pages),
            timeout=settings.summary_timeout,
        )

    LOGGER.info(
        "Crawl complete: %d page(s), %d failure(s), %d words",
        len(pages),
        len(failures),
        document.stats["total_words"],
    )
    return document


def crawl_docs(
    request: CrawlRequest,
    *,
    settings: Optional[CrawlSettings] = None,
    summarizer: Optional[Summarizer] = None,
) -> AggregatedDocument:
    """Synchronous wrapper for crawl_docs_async."""
    return asyncio.run(
        crawl_docs_async(request, settings=settings, summarizer=summarizer)
    )
