from __future__ import annotations

import base64

import fitz  # PyMuPDF
import httpx


async def download_pdf(url: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Download PDF bytes from a URL."""
    if client is not None:
        response = await client.get(url)
        response.raise_for_status()
        return response.content
    async with httpx.AsyncClient(follow_redirects=True, timeout=60.0) as own_client:
        response = await own_client.get(url)
        response.raise_for_status()
        return response.content


def render_page_jpeg(doc: fitz.Document, page_num: int, *, scale: float, quality: int) -> bytes:
    """Rasterize page ``page_num`` (1-indexed) to JPEG bytes."""
    if page_num < 1 or page_num > doc.page_count:
        raise ValueError(f"Page {page_num} out of range (document has {doc.page_count} pages)")
    page = doc.load_page(page_num - 1)
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    return pix.tobytes(output="jpeg", jpg_quality=quality)


def jpeg_data_url(data: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")
