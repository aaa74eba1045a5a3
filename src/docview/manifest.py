"""Manifest of pre-rendered page images.

The offline rasterizer uploads ``pdfs-as-jpegs/manifest.json`` next to the
JPEGs it produces, mapping each PDF key to its page count. When a key is in
the manifest its pages can be served as plain image URLs instead of being
rendered from the PDF.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from docview.models import ManifestEntry

log = logging.getLogger(__name__)

Manifest = dict[str, ManifestEntry]

_manifest_adapter = TypeAdapter(Manifest)


class ManifestStore:
    def __init__(self) -> None:
        self._manifest: Manifest | None = None

    def set(self, manifest: Mapping[str, ManifestEntry | Mapping[str, Any]]) -> None:
        """Replace the whole manifest. Raw dicts are validated into entries."""
        self._manifest = _manifest_adapter.validate_python(dict(manifest))

    def get(self) -> Manifest | None:
        return self._manifest

    def page_count(self, key: str) -> int | None:
        """Known page count for ``key``, or None if not loaded / not listed."""
        if self._manifest is None:
            return None
        entry = self._manifest.get(key)
        return entry.pages if entry is not None else None

    @property
    def loaded(self) -> bool:
        return self._manifest is not None


def parse_manifest(raw: Any) -> Manifest:
    """Validate each entry on its own so one bad record only drops that key."""
    if not isinstance(raw, dict):
        raise ValueError(f"manifest must be a JSON object, got {type(raw).__name__}")
    manifest: Manifest = {}
    for key, value in raw.items():
        try:
            manifest[key] = ManifestEntry.model_validate(value)
        except ValidationError:
            log.warning("Skipping malformed manifest entry for %s: %r", key, value)
    return manifest


async def fetch_manifest(url: str, client: httpx.AsyncClient | None = None) -> Manifest | None:
    """Fetch and validate the manifest. Returns None on any failure."""
    try:
        if client is None:
            async with httpx.AsyncClient(follow_redirects=True, timeout=30.0) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
        if not response.is_success:
            log.warning(
                "PDF manifest not available (HTTP %s), falling back to PDF rendering",
                response.status_code,
            )
            return None
        return parse_manifest(response.json())
    except Exception:
        log.warning("Failed to fetch PDF manifest, falling back to PDF rendering", exc_info=True)
        return None
