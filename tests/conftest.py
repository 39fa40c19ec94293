"""Shared fixtures: fake renderer, controllable clock and a wired service."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from pipetakeoff.config import Settings
from pipetakeoff.ingest import DocumentIngestor, RenderedPage
from pipetakeoff.providers import MockVisionClient
from pipetakeoff.services.takeoff import TakeoffService, get_takeoff_service
from pipetakeoff.sessions import SessionStore


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeRenderer:
    """Renders ``pages`` solid-colour images; optionally fails on one page."""

    pages: int = 2
    fail_on_page: int | None = None
    fail_on_open: bool = False
    rendered: List[int] = field(default_factory=list)
    opened: int = 0
    closed: int = 0

    def iter_pages(self, data: bytes) -> Iterator[RenderedPage]:
        if self.fail_on_open:
            raise ValueError("not a PDF")
        self.opened += 1
        try:
            for page_index in range(self.pages):
                if self.fail_on_page == page_index:
                    raise RuntimeError(f"cannot render page {page_index}")
                self.rendered.append(page_index)
                shade = (page_index * 40) % 256
                yield RenderedPage(width=4, height=3, pixels=bytes([shade, 0, 255]) * 12)
        finally:
            self.closed += 1


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(fake_clock: FakeClock) -> SessionStore:
    return SessionStore(ttl_seconds=1800, clock=fake_clock)


@pytest.fixture
def mock_client() -> MockVisionClient:
    return MockVisionClient()


@pytest.fixture
def service(store: SessionStore, mock_client: MockVisionClient) -> TakeoffService:
    return TakeoffService(
        settings=Settings(llm_provider="mock", max_upload_bytes=1024),
        store=store,
        ingestor=DocumentIngestor(store, FakeRenderer(pages=3)),
        vision_client=mock_client,
    )


@pytest.fixture
def client(service: TakeoffService) -> Iterator[TestClient]:
    from pipetakeoff.main import app

    app.dependency_overrides[get_takeoff_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
