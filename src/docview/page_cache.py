"""In-memory LRU cache for rendered PDF pages.

Keyed by document key (the storage path). Each entry holds the full ordered
page sequence for one document, so the cache is bounded by document count
rather than bytes. Rendered pages are large; the default capacity of 10 keeps
the document being viewed plus a few prefetched neighbours.

Cache is lost on process restart — use ``clear()`` (or ``DELETE /cache``) to
force a full re-render.
"""
from __future__ import annotations

import logging
from collections import OrderedDict

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class PageCache:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._store: OrderedDict[str, list[str]] = OrderedDict()

    def get(self, key: str) -> list[str] | None:
        """Return the pages for ``key`` and mark it most recently used."""
        pages = self._store.get(key)
        if pages is None:
            return None
        self._store.move_to_end(key, last=True)
        return pages

    def peek(self, key: str) -> list[str] | None:
        return self._store.get(key)

    def set(self, key: str, pages: list[str]) -> None:
        # Re-inserting moves an existing key to the most recent position.
        self._store.pop(key, None)
        self._store[key] = pages
        self._evict()

    def clear(self) -> None:
        self._store.clear()

    def size(self) -> int:
        return len(self._store)

    def keys(self) -> list[str]:
        """Keys ordered from least to most recently used."""
        return list(self._store)

    def stats(self) -> dict[str, int]:
        return {"items": len(self._store), "cap": self.capacity}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def _evict(self) -> None:
        while len(self._store) > self.capacity:
            evicted, _ = self._store.popitem(last=False)
            log.debug("Evicted %s from page cache", evicted)
