"""Output and formatting helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .document import AggregatedDocument


def format_index(doc: AggregatedDocument) -> str:
    """Render the word-span table of contents as markdown."""
    lines = [f"# {doc.title}", f"_{len(doc.index_entries)} pages from {doc.url}_", ""]
    for entry in doc.index_entries:
        lines.append(
            f"{entry.page_number}. {entry.title} "
            f"(words {entry.start_word}-{entry.end_word}, {entry.length_words} words)"
        )
    if doc.failures:
        lines.append("")
        lines.append("**Failed:**")
        for failure in doc.failures:
            lines.append(f"- {failure.url}: {failure.reason}")
    return "\n".join(lines)


def url_to_filename(url: str) -> str:
    """Convert URL to a safe filename."""
    parsed = urlparse(url)
    path = parsed.path.strip("/").replace("/", "_") or "index"
    host = parsed.netloc.replace(":", "_").replace(".", "_")
    return f"{host}_{path}"[:100]


def render_document(doc: AggregatedDocument, json_output: bool, index_only: bool) -> str:
    if json_output:
        return json.dumps(doc.to_dict(), indent=2, ensure_ascii=False)
    if index_only:
        return format_index(doc)
    return doc.content


def write_output(
    doc: AggregatedDocument,
    output: Optional[str],
    json_output: bool,
    index_only: bool = False,
) -> Optional[Path]:
    """Write the compiled document to stdout, a file, or a directory."""
    rendered = render_document(doc, json_output, index_only)

    if output is None:
        print(rendered)
        return None

    path = Path(output)
    if output.endswith("/") or path.is_dir():
        suffix = ".json" if json_output else ".md"
        path = path / (url_to_filename(doc.url) + suffix)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(rendered, encoding="utf-8")
    logging.info("Wrote %s", path)
    return path
