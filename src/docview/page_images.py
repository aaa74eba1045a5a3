"""Pre-rendered page image URLs and best-effort image warming."""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx

log = logging.getLogger(__name__)


def page_image_url(base_url: str, key: str, page: int) -> str:
    """URL of the pre-rendered JPEG for ``page`` (1-indexed) of ``key``.

    >>> page_image_url("https://w.dev", "VOL1/EFTA01.pdf", 7)
    'https://w.dev/pdfs-as-jpegs/VOL1/EFTA01/page-007.jpg'
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    base_path = key.replace(".pdf", "", 1)
    return f"{base_url.rstrip('/')}/pdfs-as-jpegs/{base_path}/page-{page:03d}.jpg"


def page_image_urls(base_url: str, key: str, count: int) -> list[str]:
    return [page_image_url(base_url, key, page) for page in range(1, count + 1)]


class ImageLoader(Protocol):
    async def load(self, url: str) -> bool:
        """Resolve once ``url`` has loaded (True) or errored (False). Never raises."""
        ...


class HttpImageLoader:
    """Warms the worker / CDN cache by fetching each image once."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def load(self, url: str) -> bool:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError:
            log.debug("Image load failed: %s", url, exc_info=True)
            return False
        return response.is_success


async def warm_images(loader: ImageLoader, urls: list[str]) -> list[str]:
    """Load every URL concurrently and wait for all to settle.

    A failed image does not abort the batch. Returns the URLs that failed.
    """
    results = await asyncio.gather(
        *(loader.load(url) for url in urls), return_exceptions=True
    )
    failed = [url for url, ok in zip(urls, results) if ok is not True]
    if failed:
        log.debug("%d of %d page images failed to load", len(failed), len(urls))
    return failed
