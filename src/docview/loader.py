"""Direct page loading for an open viewer.

Unlike prefetch, a direct load reports progress page by page and surfaces
failures as ``ViewerState.error``. A load can be cancelled when the viewer
goes away; cancellation stops all further state and cache writes but does
not abort a request that has already been issued.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

import logfire

from docview.manifest import ManifestStore
from docview.models import ViewerState
from docview.page_cache import PageCache
from docview.page_images import page_image_urls
from docview.rendering import Renderer

log = logging.getLogger(__name__)

UpdateCallback = Callable[[ViewerState], None]


class PageLoad:
    def __init__(
        self,
        key: str,
        cache: PageCache,
        manifest: ManifestStore,
        renderer: Renderer,
        image_base_url: str,
        on_update: UpdateCallback | None = None,
    ):
        self.key = key
        self._cache = cache
        self._manifest = manifest
        self._renderer = renderer
        self._image_base_url = image_base_url
        self._on_update = on_update
        self._cancelled = False
        self.state = ViewerState(key=key)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _publish(self, **changes) -> None:
        if self._cancelled:
            return
        self.state = self.state.model_copy(update=changes)
        if self._on_update is not None:
            self._on_update(self.state)

    async def run(self) -> ViewerState:
        """Load the pages for ``key``, preferring the cache, then the manifest."""
        self._publish(error=None)

        cached = self._cache.get(self.key)
        if cached:
            self._publish(pages=cached, total_pages=len(cached), loading=False)
            return self.state

        self._publish(pages=[], total_pages=0, loading=True)
        try:
            await self._load()
        except Exception as e:
            log.warning("Failed to load %s: %s", self.key, e)
            self._publish(error=str(e) or "Failed to load PDF")
        finally:
            self._publish(loading=False)
        return self.state

    async def _load(self) -> None:
        page_count = self._manifest.page_count(self.key)
        if page_count is not None and page_count > 0:
            urls = page_image_urls(self._image_base_url, self.key, page_count)
            if self._cancelled:
                return
            self._publish(pages=urls, total_pages=page_count)
            self._cache.set(self.key, urls)
            return

        with logfire.span("render {key}", key=self.key):
            doc = await self._renderer.open(self.key)
            try:
                if self._cancelled:
                    return
                self._publish(total_pages=doc.page_count)

                rendered: list[str] = []
                for page_num in range(1, doc.page_count + 1):
                    if self._cancelled:
                        return
                    rendered.append(await doc.render_page(page_num))
                    self._publish(pages=list(rendered))
            finally:
                doc.close()

        if not self._cancelled and rendered:
            self._cache.set(self.key, rendered)
