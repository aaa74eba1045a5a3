from __future__ import annotations

import asyncio

import pytest

from docview.session import BrowserSession

BASE_URL = "https://worker.test"


class FakeDocument:
    def __init__(
        self,
        key: str,
        page_count: int,
        fail_on: int | None = None,
        gate: asyncio.Event | None = None,
    ):
        self.key = key
        self.page_count = page_count
        self.fail_on = fail_on
        self.gate = gate
        self.rendered: list[int] = []
        self.closed = False

    async def render_page(self, page_num: int) -> str:
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if page_num == self.fail_on:
            raise RuntimeError(f"cannot render page {page_num}")
        self.rendered.append(page_num)
        return f"data:{self.key}#{page_num}"

    def close(self) -> None:
        self.closed = True


class FakeRenderer:
    """Renders ``page_counts[key]`` pages as ``data:{key}#{n}`` strings."""

    def __init__(self, page_counts: dict[str, int] | None = None):
        self.page_counts = page_counts or {}
        self.opened: list[str] = []
        self.documents: list[FakeDocument] = []
        self.fail_open: set[str] = set()
        self.fail_on_page: dict[str, int] = {}
        self.gate: asyncio.Event | None = None

    async def open(self, key: str) -> FakeDocument:
        self.opened.append(key)
        await asyncio.sleep(0)
        if key in self.fail_open:
            raise RuntimeError(f"failed to open {key}")
        doc = FakeDocument(
            key,
            self.page_counts.get(key, 2),
            fail_on=self.fail_on_page.get(key),
            gate=self.gate,
        )
        self.documents.append(doc)
        return doc


class FakeImageLoader:
    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.loaded: list[str] = []

    async def load(self, url: str) -> bool:
        await asyncio.sleep(0)
        self.loaded.append(url)
        return url not in self.failing


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def image_loader() -> FakeImageLoader:
    return FakeImageLoader()


@pytest.fixture
def session(renderer, image_loader) -> BrowserSession:
    return BrowserSession(renderer, image_loader, BASE_URL)
