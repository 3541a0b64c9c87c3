"""Command-line interface for the documentation crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import load_config
from .cli_output import write_output
from .config import load_settings
from .document import MAX_PAGES_CAP, CrawlRequest


def _load_config() -> None:
    load_config(cwd=Path.cwd(), load_env=load_dotenv, copy_file=shutil.copy)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_crawl_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docchain",
        description="Follow a documentation site's next-page chain and compile it into one markdown document.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Compile up to 5 pages to stdout
  docchain https://docs.example.com/intro

  # Up to 20 pages into a file
  docchain https://docs.example.com/intro --max-pages 20 -o intro.md

  # Keep an existing title (re-crawl of a stored document)
  docchain https://docs.example.com/intro --title "Example Docs"

  # Full JSON with word index, sections and failures
  docchain https://docs.example.com/intro --json -o out/

  # Only print the table of contents
  docchain https://docs.example.com/intro --index
""",
    )

    parser.add_argument("url", help="Start URL of the documentation chain")
    parser.add_argument(
        "--max-pages",
        type=int,
        default=5,
        help=f"Maximum pages to compile, 1-{MAX_PAGES_CAP} (default: 5)",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Use this title instead of deriving one from the URL",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file, or directory when ending with '/'",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON (includes index, sections and failures)",
    )
    parser.add_argument(
        "--index",
        action="store_true",
        dest="index_only",
        help="Print the word-span table of contents instead of the content",
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Skip cover image capture",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: DOCCHAIN_REQUEST_TIMEOUT or 20)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


async def _run_crawl_async(args: argparse.Namespace) -> int:
    """Main async entry point for crawl."""
    from . import crawl_docs_async

    request = CrawlRequest(
        start_url=args.url,
        max_pages=args.max_pages,
        existing_title=args.title,
    )
    settings = load_settings(
        request_timeout=args.timeout,
        capture_images=False if args.no_images else None,
    )

    doc = await crawl_docs_async(request, settings=settings)

    if doc.is_empty:
        logging.error("No pages could be retrieved from %s", args.url)
        if not args.json_output:
            return 1

    write_output(doc, args.output, args.json_output, index_only=args.index_only)
    logging.info(
        "Compiled %d page(s) into '%s' (%d words)",
        len(doc.pages),
        doc.title,
        doc.stats.get("total_words", 0),
    )
    return 0 if not doc.is_empty else 1


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the docchain command."""
    _load_config()
    args = _parse_crawl_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_crawl_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except ValueError as exc:
        logging.error("Invalid request: %s", exc)
        return 2
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
