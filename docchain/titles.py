"""Document title derivation from the crawl's start URL."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import unquote, urlparse

from .config import DEFAULT_TITLE, GENERIC_PATH_NAMES

LOGGER = logging.getLogger(__name__)


def _is_generic(segment: str) -> bool:
    stem = segment.rsplit(".", 1)[0] if "." in segment else segment
    return stem.lower() in GENERIC_PATH_NAMES


def derive_title(start_url: str, existing_title: Optional[str] = None) -> str:
    """Pick a readable title for a crawl.

    A caller-supplied title (update flow) always wins. Otherwise, in order:
    the last path segment unless generic, the second-to-last host label,
    the first path segment, the joined host labels.
    """
    if existing_title and existing_title.strip():
        return existing_title

    try:
        parsed = urlparse(start_url)
        path_segments: List[str] = [unquote(s) for s in parsed.path.split("/") if s]
        host = parsed.hostname or ""
        host_segments = [s for s in host.split(".") if s]
        if host_segments and host_segments[0] == "www":
            host_segments = host_segments[1:]
    except (TypeError, ValueError, AttributeError) as exc:
        LOGGER.debug("Could not parse %r for a title: %s", start_url, exc)
        return DEFAULT_TITLE

    if path_segments and not _is_generic(path_segments[-1]):
        return path_segments[-1]
    if len(host_segments) >= 2:
        return host_segments[-2]
    if path_segments:
        return path_segments[0]
    if host_segments:
        return ".".join(host_segments)
    return DEFAULT_TITLE
