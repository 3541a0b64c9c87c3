"""Optional summarizer collaborator for compiled documents."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from .markdown import strip_code_fences

LOGGER = logging.getLogger(__name__)

Summarizer = Callable[[str, int], Union[Optional[str], Awaitable[Optional[str]]]]


async def _call(summarizer: Summarizer, content: str, page_count: int) -> Optional[str]:
    if inspect.iscoroutinefunction(summarizer):
        return await summarizer(content, page_count)
    # Blocking summarizers run in a worker thread so the timeout still applies.
    result = await asyncio.to_thread(summarizer, content, page_count)
    if inspect.isawaitable(result):
        result = await result
    return result


async def summarize_document(
    summarizer: Optional[Summarizer],
    content: str,
    page_count: int,
    *,
    timeout: float = 30.0,
) -> Optional[str]:
    """Ask the summarizer for a short description, tolerating its failure.

    Code fences are removed before the content is handed over. A missing
    summarizer, a timeout, an error or a blank answer all yield ``None``.
    """
    if summarizer is None or not content:
        return None

    prose = strip_code_fences(content)
    try:
        description = await asyncio.wait_for(
            _call(summarizer, prose, page_count), timeout=timeout
        )
    except asyncio.TimeoutError:
        LOGGER.warning("Summarizer timed out after %.1fs", timeout)
        return None
    except Exception as exc:
        LOGGER.warning("Summarizer failed: %s", exc)
        return None

    if not description or not str(description).strip():
        return None
    return str(description).strip()
