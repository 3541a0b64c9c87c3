"""MCP Server for the documentation crawler.

Provides tools for:
- Compiling a documentation chain into one markdown document with a word index
- Inspecting which successor pages a single page points to

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for Claude Desktop, etc.)
    python -m docchain.mcp_server

    # HTTP (for remote access)
    python -m docchain.mcp_server --transport http --port 8000

Environment Variables:
    DOCCHAIN_USER_AGENT: User-Agent header for page requests
    DOCCHAIN_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 20)
    DOCCHAIN_CAPTURE_IMAGES: Capture a cover image (default: true)
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .cli_output import format_index
from .document import AggregatedDocument, CrawlRequest, FetchFailure

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

# Create the MCP server
mcp = FastMCP(
    name="Documentation Chain Crawler",
    instructions="""
    A documentation crawler that follows a site's "next page" chain.

    Tools:
       - crawl_docs: Compile up to max_pages pages, starting at a URL, into
         one markdown document with a per-page word index
       - find_successors: Show the next-page URL(s) detected on one page

    Output formats for crawl_docs:
    - markdown: Compiled markdown content (default)
    - index: Table of contents with word offsets
    - json: Full details including index, sections and failures
    """,
)


class OutputFormat(str, Enum):
    """Output format for crawl results."""

    markdown = "markdown"
    index = "index"
    json = "json"


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _format_output(doc: AggregatedDocument, output_format: OutputFormat) -> str:
    if output_format == OutputFormat.json:
        payload = doc.to_dict()
        payload["crawled_at"] = _format_timestamp()
        return json.dumps(payload, indent=2, ensure_ascii=False)
    if output_format == OutputFormat.index:
        return format_index(doc)
    if doc.is_empty:
        reasons = "; ".join(f"{f.url}: {f.reason}" for f in doc.failures)
        return f"**No pages retrieved from {doc.url}.** {reasons}".strip()
    return doc.content


# =============================================================================
# CRAWL TOOLS
# =============================================================================


@mcp.tool
async def crawl_docs(
    url: str,
    max_pages: int = 5,
    title: Optional[str] = None,
    output_format: str = "markdown",
):
    """
    Follow a documentation site's next-page chain and compile it.

    Args:
        url: Start URL of the documentation chain
        max_pages: Maximum number of pages to compile (1-50, default: 5)
        title: Optional title to keep instead of deriving one from the URL
        output_format: "markdown" (default), "index" or "json"

    Returns:
        Compiled content in the specified format.

    Examples:
        crawl_docs(url="https://docs.example.com/intro")
        crawl_docs(url="https://docs.example.com/intro", max_pages=20, output_format="json")
    """
    from . import crawl_docs_async

    try:
        fmt = OutputFormat(output_format.lower())
    except ValueError:
        fmt = OutputFormat.markdown

    try:
        request = CrawlRequest(start_url=url, max_pages=max_pages, existing_title=title)
    except ValueError as exc:
        return json.dumps({"error": str(exc), "url": url}, ensure_ascii=False)

    LOGGER.info("Crawling chain from %s (max_pages=%d)", url, request.max_pages)
    doc = await crawl_docs_async(request)
    LOGGER.info(
        "Chain complete: %d pages, %d failures",
        len(doc.pages),
        len(doc.failures),
    )
    return _format_output(doc, fmt)


@mcp.tool
async def find_successors(url: str):
    """
    Fetch one page and report the next-page URL(s) it links to.

    Args:
        url: Page URL to inspect

    Returns:
        JSON with the page URL and the detected successors, or an error.
    """
    from . import build_client, fetch_html, load_settings
    from . import find_successors as detect

    async with build_client(load_settings()) as client:
        fetched = await fetch_html(client, url)

    if isinstance(fetched, FetchFailure):
        return json.dumps({"url": url, "error": fetched.reason}, ensure_ascii=False)

    payload = {"url": url, "successors": detect(fetched.url, fetched.html)}
    if fetched.url != url:
        payload["final_url"] = fetched.url
    return json.dumps(payload, ensure_ascii=False)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the documentation chain crawler MCP server.",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
