"""Compile crawled pages into one document with a word-span index.

Offsets are counted on ``content.split()``: the same naive whitespace
tokenizer the range-fetch API applies to the stored body. The section
separator contributes exactly one token (``---``) per boundary.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from .document import AggregatedDocument, IndexEntry, PageRecord

SECTION_SEPARATOR = "\n\n---\n\n"
SEPARATOR_WORDS = len(SECTION_SEPARATOR.split())

DEFAULT_SLICE_WORDS = 10000
MAX_SLICE_WORDS = 50000

_HEADING_LINE = re.compile(r"^## (.*)$")
_URL_LINE = re.compile(r"^URL: (.*)$")


def format_section(page: PageRecord) -> str:
    return f"## {page.title}\nURL: {page.url}\n\n{page.content_markup}"


def count_words(text: str) -> int:
    return len(text.split())


def build_index(
    sections: Sequence[str], pages: Sequence[PageRecord]
) -> List[IndexEntry]:
    entries: List[IndexEntry] = []
    cursor = 0
    for number, (section, page) in enumerate(zip(sections, pages), start=1):
        if number > 1:
            cursor += SEPARATOR_WORDS
        words = count_words(section)
        entries.append(
            IndexEntry(
                page_number=number,
                start_word=cursor,
                end_word=cursor + words,
                title=page.title,
                url=page.url,
            )
        )
        cursor += words
    return entries


def aggregate(
    pages: Sequence[PageRecord],
    *,
    start_url: str,
    title: str,
) -> AggregatedDocument:
    """Join page sections and compute each page's word span."""
    pages = list(pages)
    sections = [format_section(page) for page in pages]
    image = next((page.image for page in pages if page.image), None)
    entries = build_index(sections, pages)
    content = SECTION_SEPARATOR.join(sections)
    return AggregatedDocument(
        url=start_url,
        title=title,
        content=content,
        image=image,
        index_entries=entries,
        sections=sections,
        pages=pages,
        stats={"total_words": count_words(content)},
    )


def parse_sections(content: str) -> List[Dict[str, str]]:
    """Split a compiled body back into ``{title, url, content}`` sections."""
    if not content:
        return []
    parsed: List[Dict[str, str]] = []
    for section in content.split(SECTION_SEPARATOR):
        lines = section.split("\n")
        heading = _HEADING_LINE.match(lines[0]) if lines else None
        url_line = _URL_LINE.match(lines[1]) if len(lines) > 1 else None
        parsed.append(
            {
                "title": heading.group(1) if heading else "Content",
                "url": url_line.group(1) if url_line else "",
                "content": "\n".join(lines[3:]),
            }
        )
    return parsed


def slice_words(
    content: str, start: int = 0, max_length: Optional[int] = None
) -> Dict[str, Any]:
    """Return a window of whole words from ``content`` plus paging metadata."""
    words = content.split()
    start = max(0, start or 0)
    if not max_length or max_length <= 0:
        max_length = DEFAULT_SLICE_WORDS
    max_length = min(max_length, MAX_SLICE_WORDS)

    if start >= len(words):
        return {
            "content": "",
            "total_words": len(words),
            "returned_words": 0,
            "start": start,
            "max_length": max_length,
            "end": start,
            "has_more": False,
            "next_start": None,
        }

    end = min(start + max_length, len(words))
    has_more = end < len(words)
    return {
        "content": " ".join(words[start:end]),
        "total_words": len(words),
        "returned_words": end - start,
        "start": start,
        "max_length": max_length,
        "end": end,
        "has_more": has_more,
        "next_start": end if has_more else None,
    }
