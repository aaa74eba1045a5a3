"""One browsing session: the page cache, manifest and prefetcher together.

Create a single ``BrowserSession`` per process (the server keeps it on
``app.state``) and hand it to whatever needs pages. Tests build their own.
"""
from __future__ import annotations

import asyncio
import logging

import httpx

from docview import config
from docview.loader import PageLoad, UpdateCallback
from docview.manifest import ManifestStore, fetch_manifest
from docview.navigation import FileListCache, ThumbnailCache, adjacent_file, neighbors
from docview.page_cache import DEFAULT_CAPACITY, PageCache
from docview.page_images import HttpImageLoader, ImageLoader, page_image_url
from docview.prefetch import PrefetchCoordinator
from docview.rendering import PdfRenderer, Renderer

log = logging.getLogger(__name__)


class BrowserSession:
    def __init__(
        self,
        renderer: Renderer,
        image_loader: ImageLoader,
        image_base_url: str,
        *,
        capacity: int = DEFAULT_CAPACITY,
        warm_images: bool = True,
    ):
        self.renderer = renderer
        self.image_base_url = image_base_url
        self.cache = PageCache(capacity)
        self.manifest = ManifestStore()
        self.files = FileListCache()
        self.thumbnails = ThumbnailCache()
        self._lookahead: list[asyncio.TimerHandle] = []
        self.prefetcher = PrefetchCoordinator(
            self.cache,
            self.manifest,
            renderer,
            image_loader,
            image_base_url,
            warm_images=warm_images,
        )

    async def load_manifest(
        self, url: str | None = None, client: httpx.AsyncClient | None = None
    ) -> bool:
        """Fetch the manifest and install it. Returns False if unavailable."""
        manifest = await fetch_manifest(url or config.MANIFEST_URL, client)
        if manifest is None:
            return False
        self.manifest.set(manifest)
        log.info("Loaded PDF manifest with %d entries", len(manifest))
        return True

    def open(self, key: str, on_update: UpdateCallback | None = None) -> PageLoad:
        return PageLoad(
            key,
            self.cache,
            self.manifest,
            self.renderer,
            self.image_base_url,
            on_update=on_update,
        )

    def prefetch(self, key: str) -> asyncio.Task[None]:
        return self.prefetcher.schedule(key)

    def prefetch_neighbors(
        self,
        next_keys: list[str],
        prev_key: str | None = None,
        *,
        stagger: float = config.PREFETCH_STAGGER_SECONDS,
        prev_delay: float = config.PREFETCH_PREV_DELAY_SECONDS,
    ) -> list[asyncio.TimerHandle]:
        """Prefetch upcoming documents with staggered delays, then the previous one.

        Timers still pending from the previous call are cancelled first, the
        same as navigating away from a document. Returns the new timers.
        """
        self.cancel_pending(self._lookahead)
        handles = [
            self.prefetcher.schedule_later(key, index * stagger)
            for index, key in enumerate(next_keys)
        ]
        if prev_key:
            handles.append(self.prefetcher.schedule_later(prev_key, prev_delay))
        self._lookahead = handles
        return handles

    def prefetch_around(
        self, key: str, ahead: int = config.PREFETCH_AHEAD
    ) -> list[asyncio.TimerHandle]:
        """Prefetch the listing neighbours of ``key``."""
        next_keys, prev_key = neighbors(self.files.keys(), key, ahead)
        return self.prefetch_neighbors(next_keys, prev_key)

    def cancel_pending(self, handles: list[asyncio.TimerHandle] | None = None) -> None:
        """Cancel look-ahead timers that have not fired (default: the current batch)."""
        self.prefetcher.cancel_timers(self._lookahead if handles is None else handles)

    def adjacent(self, key: str, offset: int, collection: str | None = None) -> str | None:
        """Key ``offset`` places from ``key`` in the cached listing."""
        return adjacent_file(self.files.keys(), key, offset, collection)

    async def thumbnail(self, key: str) -> str:
        """First-page image for the file grid.

        Uses the pre-rendered first page when the manifest lists ``key``,
        otherwise renders page 1. Render errors propagate to the caller.
        """
        cached = self.thumbnails.get(key)
        if cached is not None:
            return cached
        pages = self.cache.peek(key)
        if pages:
            thumb = pages[0]
        elif (self.manifest.page_count(key) or 0) > 0:
            thumb = page_image_url(self.image_base_url, key, 1)
        else:
            doc = await self.renderer.open(key)
            try:
                thumb = await doc.render_page(1)
            finally:
                doc.close()
        self.thumbnails.set(key, thumb)
        return thumb

    async def aclose(self) -> None:
        """Cancel pending look-ahead timers and wait for running prefetches."""
        self._lookahead = []
        await self.prefetcher.drain()


def create_session(client: httpx.AsyncClient) -> BrowserSession:
    """Build the production session against the configured worker."""
    renderer = PdfRenderer(
        config.WORKER_URL,
        client,
        scale=config.RENDER_SCALE,
        jpeg_quality=config.JPEG_QUALITY,
    )
    return BrowserSession(
        renderer,
        HttpImageLoader(client),
        config.WORKER_URL,
        capacity=config.PDF_CACHE_MAX_SIZE,
    )
