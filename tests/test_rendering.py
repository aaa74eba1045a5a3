import asyncio
import base64

import fitz
import httpx
import pytest

from docview.rendering import PdfRenderer

BASE_URL = "https://worker.test"


def _pdf_bytes(pages: int) -> bytes:
    doc = fitz.open()
    for n in range(pages):
        page = doc.new_page(width=200, height=100)
        page.insert_text((20, 50), f"Page {n + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def _client(pdf: bytes, requested: list[str]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.path.endswith("missing.pdf"):
            return httpx.Response(404)
        return httpx.Response(200, content=pdf, headers={"content-type": "application/pdf"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_renders_jpeg_data_urls_at_scale():
    requested: list[str] = []

    async def scenario():
        async with _client(_pdf_bytes(2), requested) as client:
            renderer = PdfRenderer(BASE_URL, client, scale=2.0, jpeg_quality=85)
            doc = await renderer.open("VOL1/EFTA01.pdf")
            try:
                return doc.page_count, [await doc.render_page(n) for n in (1, 2)]
            finally:
                doc.close()

    page_count, pages = asyncio.run(scenario())

    assert requested == [f"{BASE_URL}/VOL1/EFTA01.pdf"]
    assert page_count == 2
    for page in pages:
        prefix, payload = page.split(",", 1)
        assert prefix == "data:image/jpeg;base64"
        image = base64.b64decode(payload)
        assert image[:2] == b"\xff\xd8"
        pix = fitz.Pixmap(image)
        assert (pix.width, pix.height) == (400, 200)


def test_out_of_range_page_raises():
    async def scenario():
        async with _client(_pdf_bytes(1), []) as client:
            doc = await PdfRenderer(BASE_URL, client).open("A.pdf")
            try:
                await doc.render_page(2)
            finally:
                doc.close()

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_download_errors_propagate():
    async def scenario():
        async with _client(b"", []) as client:
            await PdfRenderer(BASE_URL, client).open("missing.pdf")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(scenario())
