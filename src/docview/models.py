from __future__ import annotations

from pydantic import BaseModel, Field


class ManifestEntry(BaseModel):
    """Pre-rendered page images available for one PDF."""

    pages: int


class FileItem(BaseModel):
    """A single object from the bucket listing."""

    key: str
    size: int = 0
    uploaded: str = ""  # ISO timestamp from the bucket


class ViewerState(BaseModel):
    """What an open viewer shows for one document."""

    key: str
    pages: list[str] = Field(default_factory=list)
    loading: bool = False
    error: str | None = None
    total_pages: int = 0


class CacheStatus(BaseModel):
    """Response from GET /cache."""

    items: int
    cap: int
    keys: list[str]
    in_flight: list[str]


class ManifestLookup(BaseModel):
    """Response from GET /manifest/{key}."""

    key: str
    pages: int | None = None


class AdjacentLookup(BaseModel):
    """Response from GET /documents/{key}/adjacent."""

    key: str
    offset: int
    adjacent: str | None = None
