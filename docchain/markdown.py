"""HTML to markdown conversion tuned for documentation pages."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from bs4 import Tag
from markdownify import MarkdownConverter

_LANGUAGE_PREFIXES = ("language-", "lang-", "highlight-source-")
_FENCE_OPEN = re.compile(r"^\s*(`{3,}|~{3,})")
_BACKTICK_RUN = re.compile(r"`+")
_MAX_BLANK_LINES = 2


def _class_tokens(el: Optional[Tag]) -> Iterable[str]:
    if el is None or not isinstance(el, Tag):
        return []
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return classes


def detect_code_language(pre: Tag) -> str:
    """Infer a fence language from class tokens around a ``<pre>`` block."""
    code = pre.find("code")
    for candidate in (code, pre, pre.parent):
        for token in _class_tokens(candidate):
            for prefix in _LANGUAGE_PREFIXES:
                if token.startswith(prefix) and len(token) > len(prefix):
                    return token[len(prefix):]
    return ""


class DocsMarkdownConverter(MarkdownConverter):
    """Markdown converter that keeps code blocks byte-for-byte."""

    def convert_pre(self, el, text, *args, **kwargs):
        code = el.get_text()
        # Only surrounding newlines go; indentation of the first line stays.
        code = code.strip("\n")
        language = detect_code_language(el)
        longest = max((len(run) for run in _BACKTICK_RUN.findall(code)), default=0)
        fence = "`" * max(3, longest + 1)
        return f"\n\n{fence}{language}\n{code}\n{fence}\n\n"


_CONVERTER = DocsMarkdownConverter(
    heading_style="ATX",
    bullets="-",
    newline_style="spaces",
    escape_underscores=False,
)


def _unescape(line: str) -> str:
    return line.replace("\\_", "_").replace("\\`", "`")


def normalize_markdown(markdown: str) -> str:
    """Tidy converted markdown without touching fenced code bodies.

    Outside fences: non-breaking spaces become plain spaces, underscore and
    backtick escapes are undone, blank-line runs are capped, and every
    opening fence gets a blank line before it.
    """
    source = (markdown or "").replace("\r\n", "\n").replace("\r", "\n")
    out: List[str] = []
    fence: Optional[str] = None
    blank_run = 0

    for line in source.split("\n"):
        if fence is not None:
            out.append(line)
            stripped = line.strip()
            if stripped.startswith(fence) and stripped == fence[0] * len(stripped):
                fence = None
            continue

        line = _unescape(line.replace("\u00a0", " "))
        opening = _FENCE_OPEN.match(line)
        if opening:
            if out and out[-1].strip():
                out.append("")
            out.append(line)
            fence = opening.group(1)
            blank_run = 0
            continue

        if not line.strip():
            blank_run += 1
            if blank_run > _MAX_BLANK_LINES:
                continue
            out.append("")
            continue

        blank_run = 0
        out.append(line)

    return "\n".join(out).strip("\n")


def html_to_markdown(region: Tag) -> str:
    """Convert a parsed region to normalized markdown."""
    return normalize_markdown(_CONVERTER.convert_soup(region))


def strip_code_fences(markdown: str) -> str:
    """Drop fenced code blocks, keeping the surrounding prose."""
    out: List[str] = []
    fence: Optional[str] = None
    for line in (markdown or "").split("\n"):
        if fence is not None:
            stripped = line.strip()
            if stripped.startswith(fence) and stripped == fence[0] * len(stripped):
                fence = None
            continue
        opening = _FENCE_OPEN.match(line)
        if opening:
            fence = opening.group(1)
            continue
        out.append(line)
    return re.sub(r"\n{3,}", "\n\n", "\n".join(out)).strip()
