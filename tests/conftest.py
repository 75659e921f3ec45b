# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides test settings, an HTTP mock router built on httpx.MockTransport,
in-test PDF generation and a controllable clock. No network access: every
HTTP call goes through the mock transport.
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from lexresearch.config.settings import Settings
from lexresearch.core.models import Query

HttpHandler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockRouter:
    """Route mock HTTP requests by host and path prefix.

    Unmatched requests answer 404. Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, HttpHandler]] = []
        self.requests: list[httpx.Request] = []

    def add(self, host: str, path_prefix: str, handler: HttpHandler) -> None:
        self.routes.append((host, path_prefix, handler))

    def add_json(self, host: str, path_prefix: str, payload: dict, status: int = 200) -> None:
        self.add(host, path_prefix, lambda request: httpx.Response(status, json=payload))

    def add_bytes(self, host: str, path_prefix: str, content: bytes, status: int = 200) -> None:
        self.add(host, path_prefix, lambda request: httpx.Response(status, content=content))

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for host, prefix, handler in self.routes:
            if request.url.host == host and request.url.path.startswith(prefix):
                return handler(request)
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_pdf(text: str, pages: int = 1) -> bytes:
    """Build a small PDF whose text layer contains ``text`` on every page."""
    import fitz

    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


def make_blank_pdf() -> bytes:
    """A valid PDF with one page and no text layer."""
    import fitz

    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


# === FIXTURES ===


@pytest.fixture
def settings() -> Settings:
    """Settings with no delays, a CourtListener key and no .env lookup."""
    return Settings(
        _env_file=None,
        courtlistener_api_key="test-token",
        fetch_min_interval_s=0.0,
        http_retry_base_delay_s=0.0,
        http_max_retries=1,
        source_timeout_s=5.0,
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(
        _env_file=None,
        courtlistener_api_key="",
        fetch_min_interval_s=0.0,
        http_retry_base_delay_s=0.0,
        http_max_retries=0,
    )


@pytest.fixture
def router() -> MockRouter:
    return MockRouter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def criminal_query() -> Query:
    return Query(text="How do I appeal a criminal conviction in Massachusetts?", user_id="u1")


@pytest.fixture
def rules_text() -> str:
    """Extracted text of a small rules document."""
    return (
        "Massachusetts Rules of Criminal Procedure\n\n"
        "Rule 29. Revision or Revocation of Sentence\n"
        "(a) The trial judge may revise or revoke a sentence within sixty days.\n\n"
        "Rule 30. Postconviction Relief\n"
        "(a) Unlawful Restraint. Any person imprisoned or restrained of liberty "
        "pursuant to a criminal conviction may at any time move the trial judge "
        "to release him or her.\n\n"
        "(b) New Trial. The trial judge upon motion in writing may grant a new "
        "trial at any time if it appears that justice may not have been done.\n\n"
        "Rule 31. Stay of Execution; Relief Pending Review\n"
        "(a) Imprisonment. If a sentence of imprisonment is imposed upon conviction "
        "and an appeal is taken, the judge may stay execution of the sentence.\n"
    )


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    """Return make_pdf so tests can build PDFs with their own text."""
    return make_pdf


@pytest.fixture
def blank_pdf() -> bytes:
    return make_blank_pdf()
