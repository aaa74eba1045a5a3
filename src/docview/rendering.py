"""Rendering capability: turn a PDF in the bucket into page images.

The cache and the prefetcher only depend on the ``Renderer`` protocol;
``PdfRenderer`` is the production implementation backed by PyMuPDF.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import fitz  # PyMuPDF
import httpx

from docview.pdf_utils import download_pdf, jpeg_data_url, render_page_jpeg

log = logging.getLogger(__name__)


class RenderedDocument(Protocol):
    page_count: int

    async def render_page(self, page_num: int) -> str:
        """Return page ``page_num`` (1-indexed) as an image URL."""
        ...

    def close(self) -> None: ...


class Renderer(Protocol):
    async def open(self, key: str) -> RenderedDocument: ...


class PdfDocument:
    """An opened PDF whose pages are rasterized off the event loop."""

    def __init__(self, doc: fitz.Document, *, scale: float, jpeg_quality: int):
        self._doc = doc
        self._scale = scale
        self._quality = jpeg_quality
        self.page_count = doc.page_count

    async def render_page(self, page_num: int) -> str:
        data = await asyncio.to_thread(
            render_page_jpeg, self._doc, page_num, scale=self._scale, quality=self._quality
        )
        return jpeg_data_url(data)

    def close(self) -> None:
        self._doc.close()


class PdfRenderer:
    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        *,
        scale: float = 2.0,
        jpeg_quality: int = 85,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client
        self.scale = scale
        self.jpeg_quality = jpeg_quality

    def document_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def open(self, key: str) -> PdfDocument:
        pdf_bytes = await download_pdf(self.document_url(key), self._client)
        doc = await asyncio.to_thread(fitz.open, stream=pdf_bytes, filetype="pdf")
        log.debug("Opened %s (%d pages)", key, doc.page_count)
        return PdfDocument(doc, scale=self.scale, jpeg_quality=self.jpeg_quality)
