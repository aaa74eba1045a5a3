from __future__ import annotations

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv()

import logfire
logfire.configure(
    service_name="docview-server",
    environment=os.environ.get("RAILWAY_ENVIRONMENT", "development"),
    send_to_logfire="if-token-present",
)
logfire.instrument_httpx()

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from docview import config
from docview.models import (
    AdjacentLookup,
    CacheStatus,
    FileItem,
    ManifestLookup,
    ViewerState,
)
from docview.session import BrowserSession, create_session


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with httpx.AsyncClient(
        follow_redirects=True, timeout=config.HTTP_TIMEOUT_SECONDS
    ) as client:
        session = create_session(client)
        await session.load_manifest(client=client)
        app.state.session = session
        try:
            yield
        finally:
            await session.aclose()


app = FastAPI(
    title="docview",
    description="PDF archive browser with cached, prefetched page renders",
    lifespan=lifespan,
)
logfire.instrument_fastapi(app)


def get_session(request: Request) -> BrowserSession:
    return request.app.state.session


class FilesPage(BaseModel):
    """One page of the bucket listing, as posted by the listing proxy."""

    files: list[FileItem]
    cursor: str | None = None
    has_more: bool = False


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------
@app.get("/documents/{key:path}/pages", response_model=ViewerState)
async def document_pages(
    key: str,
    next_keys: list[str] = Query(default=[], alias="next"),
    session: BrowserSession = Depends(get_session),
):
    """Return every page of a document, rendering it if it is not cached.

    Neighbouring documents are prefetched in the background afterwards:
    those passed as ``next`` or, if none are given, the listing neighbours.
    """
    state = await session.open(key).run()
    if state.error is not None:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=state.model_dump(mode="json"),
        )
    if next_keys:
        session.prefetch_neighbors(next_keys[: config.PREFETCH_AHEAD])
    else:
        session.prefetch_around(key)
    return state


@app.get("/documents/{key:path}/adjacent", response_model=AdjacentLookup)
async def adjacent_document(
    key: str,
    offset: int = 1,
    collection: str | None = None,
    session: BrowserSession = Depends(get_session),
):
    """Previous (negative ``offset``) or next document in the listing order."""
    return AdjacentLookup(
        key=key, offset=offset, adjacent=session.adjacent(key, offset, collection)
    )


@app.get("/thumbnails/{key:path}")
async def thumbnail(key: str, session: BrowserSession = Depends(get_session)):
    try:
        image = await session.thumbnail(key)
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Failed to render thumbnail: {e}")
    return {"key": key, "image": image}


@app.post("/prefetch/{key:path}", status_code=status.HTTP_202_ACCEPTED)
async def prefetch(key: str, session: BrowserSession = Depends(get_session)):
    """Warm the page cache for ``key`` without waiting for it."""
    session.prefetch(key)
    return {"status": "scheduled"}


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
@app.get("/files", response_model=FilesPage)
async def list_files(session: BrowserSession = Depends(get_session)):
    files = session.files
    return FilesPage(
        files=list(files.files), cursor=files.cursor, has_more=files.has_more
    )


@app.post("/files")
async def append_files(page: FilesPage, session: BrowserSession = Depends(get_session)):
    added = session.files.append(page.files, page.cursor, page.has_more)
    return {"added": added, "total": len(session.files.files)}


@app.delete("/files")
async def reset_files(session: BrowserSession = Depends(get_session)):
    session.files.reset()
    return {"status": "reset"}


# ---------------------------------------------------------------------------
# Cache + manifest
# ---------------------------------------------------------------------------
@app.get("/cache", response_model=CacheStatus)
async def cache_status(session: BrowserSession = Depends(get_session)):
    stats = session.cache.stats()
    return CacheStatus(
        items=stats["items"],
        cap=stats["cap"],
        keys=session.cache.keys(),
        in_flight=sorted(session.prefetcher.in_flight),
    )


@app.delete("/cache")
async def clear_cache(session: BrowserSession = Depends(get_session)):
    cleared = session.cache.size()
    session.cache.clear()
    return {"cleared": cleared}


@app.get("/manifest/{key:path}", response_model=ManifestLookup)
async def manifest_lookup(key: str, session: BrowserSession = Depends(get_session)):
    return ManifestLookup(key=key, pages=session.manifest.page_count(key))


@app.post("/manifest/reload")
async def reload_manifest(session: BrowserSession = Depends(get_session)):
    loaded = await session.load_manifest()
    if not loaded:
        raise HTTPException(status_code=503, detail="PDF manifest not available")
    manifest = session.manifest.get() or {}
    return {"status": "loaded", "entries": len(manifest)}


def main():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
