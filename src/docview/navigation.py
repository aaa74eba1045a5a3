"""Bucket file list caching and prev/next navigation.

Files are ordered by their EFTA document id, not by storage path, so that
neighbouring documents from different volumes interleave correctly.
"""
from __future__ import annotations

import re

from docview.models import FileItem

_FILE_ID_RE = re.compile(r"EFTA\d+")


def file_id(key: str) -> str:
    match = _FILE_ID_RE.search(key)
    return match.group(0) if match else key


def sort_files(files: list[FileItem]) -> list[FileItem]:
    return sorted(files, key=lambda f: file_id(f.key))


def adjacent_file(
    keys: list[str],
    current: str,
    offset: int,
    collection: str | None = None,
) -> str | None:
    """Key ``offset`` places away from ``current``, optionally within a collection."""
    if collection and collection != "All":
        keys = sorted((k for k in keys if k.startswith(collection)), key=file_id)
    try:
        index = keys.index(current)
    except ValueError:
        return None
    target = index + offset
    if target < 0 or target >= len(keys):
        return None
    return keys[target]


def neighbors(keys: list[str], current: str, ahead: int = 5) -> tuple[list[str], str | None]:
    """The next ``ahead`` keys after ``current`` and the one before it."""
    try:
        index = keys.index(current)
    except ValueError:
        return [], None
    next_keys = keys[index + 1 : index + 1 + ahead]
    prev_key = keys[index - 1] if index > 0 else None
    return next_keys, prev_key


class FileListCache:
    """Paginated bucket listing accumulated across requests."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.files: list[FileItem] = []
        self.cursor: str | None = None
        self.has_more = True

    def append(self, new_files: list[FileItem], cursor: str | None, has_more: bool) -> int:
        """Add a page of results, skipping keys already present. Returns count added."""
        existing = {f.key for f in self.files}
        unique = [f for f in new_files if f.key not in existing]
        self.files = [*self.files, *unique]
        self.cursor = cursor
        self.has_more = has_more
        return len(unique)

    def keys(self) -> list[str]:
        return [f.key for f in sort_files(self.files)]


class ThumbnailCache:
    """First-page thumbnails. Small enough to keep without eviction."""

    def __init__(self) -> None:
        self._thumbnails: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._thumbnails.get(key)

    def set(self, key: str, data_url: str) -> None:
        self._thumbnails[key] = data_url

    def __len__(self) -> int:
        return len(self._thumbnails)
