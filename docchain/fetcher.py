"""HTTP retrieval of pages and cover images."""

from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse

import httpx

from .config import CrawlSettings
from .document import FetchFailure

LOGGER = logging.getLogger(__name__)

TIMEOUT_REASON = "timeout"


@dataclass(slots=True)
class FetchedHtml:
    """Body of a fetched page and the URL it was finally served from."""

    url: str
    html: str


def build_client(settings: CrawlSettings) -> httpx.AsyncClient:
    """Create the HTTP client shared by all requests of one crawl."""
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        },
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


def _failure_reason(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return TIMEOUT_REASON
    message = str(exc).strip()
    return message or exc.__class__.__name__


async def fetch_html(
    client: httpx.AsyncClient, url: str
) -> Union[FetchedHtml, FetchFailure]:
    """GET ``url`` and return its body, or a failure describing why not.

    Redirects are followed; ``FetchedHtml.url`` is the URL after the last
    redirect and is the base for resolving the page's relative links.

    Non-2xx responses fail with ``"HTTP <status>"``. Transport errors fail
    with ``"timeout"`` or the underlying error message. Nothing is retried.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        reason = _failure_reason(exc)
        LOGGER.debug("Fetch failed for %s: %s", url, reason)
        return FetchFailure(url=url, reason=reason)

    if not response.is_success:
        return FetchFailure(url=url, reason=f"HTTP {response.status_code}")

    try:
        html = response.text
    except (UnicodeDecodeError, LookupError) as exc:
        return FetchFailure(url=url, reason=str(exc))
    return FetchedHtml(url=str(response.url), html=html)


def _image_content_type(response: httpx.Response, url: str) -> str:
    header = response.headers.get("content-type", "")
    content_type = header.split(";", 1)[0].strip().lower()
    if content_type:
        return content_type
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed or "application/octet-stream"


async def fetch_image_data_uri(
    client: httpx.AsyncClient, url: str, *, timeout: Optional[float] = None
) -> Optional[str]:
    """Fetch an image and embed it as a base64 ``data:`` URI.

    Every failure is swallowed: a missing cover image never fails a page.
    """
    if url.startswith("data:"):
        return url

    try:
        if timeout is None:
            response = await client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
    except httpx.HTTPError as exc:
        LOGGER.debug("Image fetch failed for %s: %s", url, _failure_reason(exc))
        return None

    if not response.is_success:
        LOGGER.debug("Image fetch for %s returned HTTP %d", url, response.status_code)
        return None

    content_type = _image_content_type(response, url)
    if not content_type.startswith("image/") and content_type != "application/octet-stream":
        LOGGER.debug("Skipping non-image cover %s (%s)", url, content_type)
        return None

    if not response.content:
        return None

    payload = base64.b64encode(response.content).decode("ascii")
    return f"data:{content_type};base64,{payload}"
