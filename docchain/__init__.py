"""Sequential documentation crawler with markdown extraction.

This package follows a documentation site's chain of "next" pages from a
single start URL, extracts the main content of each page as markdown and
compiles everything into one document with a word-span index. It supports:

- Following rel="next" / "Next" / navigation-order successor links
- Main-content extraction with chrome removal and code-fence preservation
- Cover image capture as a data URI
- A word-offset table of contents for paginated retrieval

Example usage:

    from docchain import CrawlRequest, crawl_docs, crawl_docs_async

    doc = crawl_docs(CrawlRequest("https://docs.example.com/intro", max_pages=10))
    print(doc.title)
    for entry in doc.index_entries:
        print(entry.page_number, entry.title, entry.start_word, entry.end_word)

    # Single page, no successor following
    outcome = await crawl_page_async("https://docs.example.com/intro")
"""

from __future__ import annotations

from typing import Optional

import httpx

from .aggregate import (
    SECTION_SEPARATOR,
    aggregate,
    build_index,
    format_section,
    parse_sections,
    slice_words,
)
from .builder import build_page_outcome
from .config import CrawlSettings, load_settings
from .document import (
    AggregatedDocument,
    CrawlFailure,
    CrawlRequest,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    IndexEntry,
    PageRecord,
)
from .extractor import extract_page
from .fetcher import FetchedHtml, build_client, fetch_html
from .frontier import Frontier, crawl_docs, crawl_docs_async
from .successors import find_successors
from .summarize import Summarizer, summarize_document
from .titles import derive_title

__all__ = [
    # Document types
    "AggregatedDocument",
    "CrawlFailure",
    "CrawlRequest",
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "IndexEntry",
    "PageRecord",
    # Crawl
    "Frontier",
    "crawl_docs",
    "crawl_docs_async",
    "crawl_page_async",
    # Components
    "build_client",
    "extract_page",
    "FetchedHtml",
    "fetch_html",
    "find_successors",
    "derive_title",
    # Aggregation
    "SECTION_SEPARATOR",
    "aggregate",
    "build_index",
    "format_section",
    "parse_sections",
    "slice_words",
    # Summarizer collaborator
    "Summarizer",
    "summarize_document",
    # Config
    "CrawlSettings",
    "load_settings",
    # MCP Server
    "mcp",
]


def get_mcp_server():
    """Get the MCP server instance (lazy import to avoid dependency if not needed)."""
    from .mcp_server import mcp

    return mcp


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


async def crawl_page_async(
    url: str,
    *,
    settings: Optional[CrawlSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchOutcome:
    """
    Fetch and extract a single page without following successors.

    Args:
        url: The URL to fetch.
        settings: Optional CrawlSettings; read from the environment if omitted.
        client: Optional httpx client to reuse.

    Returns:
        FetchSuccess with title, markdown and raw HTML, or FetchFailure.
    """
    settings = settings or load_settings()
    if client is not None:
        return await build_page_outcome(client, url, settings)
    async with build_client(settings) as owned:
        return await build_page_outcome(owned, url, settings)
