"""Background prefetching of PDF pages into the page cache.

Prefetch is opportunistic: it is triggered from several uncoordinated places
(hover, look-ahead timers, neighbour navigation) and must never surface a
failure. At most one prefetch runs per key; a second request for a key that
is cached or already in flight returns immediately.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

import logfire

from docview.manifest import ManifestStore
from docview.page_cache import PageCache
from docview.page_images import ImageLoader, page_image_urls, warm_images
from docview.rendering import Renderer

log = logging.getLogger(__name__)


class PrefetchCoordinator:
    def __init__(
        self,
        cache: PageCache,
        manifest: ManifestStore,
        renderer: Renderer,
        image_loader: ImageLoader,
        image_base_url: str,
        *,
        warm_images: bool = True,
    ):
        self._cache = cache
        self._manifest = manifest
        self._renderer = renderer
        self._image_loader = image_loader
        self._image_base_url = image_base_url
        self._warm_images = warm_images
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._timers: set[asyncio.TimerHandle] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def prefetch(self, key: str) -> None:
        """Render or resolve the pages for ``key`` and store them in the cache."""
        if self._cache.get(key) is not None or key in self._in_flight:
            return

        # Claim the key before the first await so concurrent callers see it.
        self._in_flight.add(key)
        try:
            pages = await self._resolve_pages(key)
            if pages:
                self._cache.set(key, pages)
        except Exception:
            log.debug("Prefetch failed for %s", key, exc_info=True)
        finally:
            self._in_flight.discard(key)

    async def _resolve_pages(self, key: str) -> list[str]:
        page_count = self._manifest.page_count(key)
        if page_count is not None and page_count > 0:
            urls = page_image_urls(self._image_base_url, key, page_count)
            if self._warm_images:
                await warm_images(self._image_loader, urls)
            return urls

        with logfire.span("prefetch render {key}", key=key):
            doc = await self._renderer.open(key)
            try:
                pages: list[str] = []
                for page_num in range(1, doc.page_count + 1):
                    pages.append(await doc.render_page(page_num))
                return pages
            finally:
                doc.close()

    def schedule(self, key: str) -> asyncio.Task[None]:
        """Start ``prefetch(key)`` in the background (fire-and-forget)."""
        task = asyncio.get_running_loop().create_task(self.prefetch(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def schedule_later(self, key: str, delay: float) -> asyncio.TimerHandle:
        """Schedule a prefetch after ``delay`` seconds. Cancel the handle to skip it."""
        loop = asyncio.get_running_loop()

        def fire() -> None:
            self._timers.discard(handle)
            self.schedule(key)

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of delayed prefetches that have not fired yet."""
        return len(self._timers)

    def cancel_timers(self, handles: Iterable[asyncio.TimerHandle] | None = None) -> None:
        """Cancel ``handles``, or every delayed prefetch that has not fired."""
        for handle in list(self._timers if handles is None else handles):
            handle.cancel()
            self._timers.discard(handle)

    async def drain(self) -> None:
        """Drop pending timers and wait for every running prefetch task to finish."""
        self.cancel_timers()
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
