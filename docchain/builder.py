"""Turn one URL into a FetchOutcome: fetch, extract, capture cover image."""

from __future__ import annotations

import logging

import httpx

from .config import CrawlSettings
from .document import FetchFailure, FetchOutcome, FetchSuccess
from .extractor import extract_page
from .fetcher import fetch_html, fetch_image_data_uri

LOGGER = logging.getLogger(__name__)


async def build_page_outcome(
    client: httpx.AsyncClient,
    url: str,
    settings: CrawlSettings,
    *,
    capture_image: bool = True,
) -> FetchOutcome:
    """Fetch ``url`` and extract its main content.

    Transport, HTTP and extraction problems come back as ``FetchFailure``.
    A cover image that cannot be fetched is simply left out.
    """
    fetched = await fetch_html(client, url)
    if isinstance(fetched, FetchFailure):
        return fetched
    if fetched.url != url:
        LOGGER.debug("%s redirected to %s", url, fetched.url)

    extracted = extract_page(
        fetched.html,
        fetched.url,
        main_selectors=settings.main_selectors,
        chrome_selectors=settings.chrome_selectors,
    )
    if isinstance(extracted, FetchFailure):
        return FetchFailure(url=url, reason=extracted.reason)

    image = None
    if capture_image and settings.capture_images and extracted.image_url:
        image = await fetch_image_data_uri(
            client, extracted.image_url, timeout=settings.image_timeout
        )
        if image is None:
            LOGGER.debug("No cover image captured for %s", url)

    return FetchSuccess(
        url=url,
        title=extracted.title,
        content_markup=extracted.content_markup,
        raw_html=fetched.html,
        image=image,
        final_url=fetched.url,
    )
