# tests/integration/logging/test_int_logging_subsystem.py — v2
"""Integration tests for logging subsystem.

Covers: logging/logger.py, logging/context.py wired through a research query.
Every line is parsed as JSON; context fields must follow the query into the
concurrent source tasks and be cleared afterwards.
"""

from __future__ import annotations

import io
import json
import logging

import httpx
import pytest

from lexresearch.core.models import Query
from lexresearch.logging.context import get_context
from lexresearch.logging.logger import ROOT_LOGGER, setup_logging
from lexresearch.pipeline.research import ResearchShell

CL = "www.courtlistener.com"


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    setup_logging(level="DEBUG", log_format="json", stream=stream)
    yield stream
    logging.getLogger(ROOT_LOGGER).handlers.clear()


def _entries(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestResearchLogging:
    @pytest.mark.asyncio
    async def test_query_and_source_context(self, settings, router, log_stream):
        router.add_json(CL, "/api/rest/v4/search/", {"results": [
            {"caseName": "Commonwealth v. Smith", "absolute_url": "/opinion/1/x/"},
        ]})
        async with ResearchShell(settings, http_client=router.client()) as shell:
            response = await shell.research(
                Query(text="Rule 31 criminal appeal", mode="fast", user_id="u1")
            )

        entries = _entries(log_stream)
        assert entries
        assert all(e["logger"].startswith(ROOT_LOGGER) for e in entries)

        with_query = [e for e in entries if e.get("context", {}).get("query_id")]
        assert with_query
        assert {e["context"]["query_id"] for e in with_query} == {response.query_id}
        assert all(e["context"].get("user_id") == "u1" for e in with_query)

        source_lines = [
            e for e in entries
            if e.get("context", {}).get("source") == "courtlistener"
            and "returned" in e["message"]
        ]
        assert source_lines
        assert source_lines[0]["context"]["mode"] == "FAST"

        assert get_context().query_id is None
        assert get_context().source is None

    @pytest.mark.asyncio
    async def test_source_failure_logged_as_warning(self, settings, router, log_stream):
        router.add(CL, "/api/rest/v4/search/", lambda request: httpx.Response(503))
        async with ResearchShell(settings, http_client=router.client()) as shell:
            response = await shell.research(Query(text="Rule 31 criminal appeal", mode="fast"))

        assert response.status == "partial"
        warnings = [e for e in _entries(log_stream) if e["level"] == "WARNING"]
        assert any("courtlistener" in e["message"] for e in warnings)


class TestTextLogging:
    def test_text_format_includes_query_and_source(self):
        from lexresearch.logging.context import clear_context, set_query_context, set_source_context

        stream = io.StringIO()
        setup_logging(log_format="text", stream=stream)
        try:
            set_query_context("q-42", "u1")
            set_source_context("federal_register")
            logging.getLogger("lexresearch.clients").info("fetched")
        finally:
            clear_context()
            logging.getLogger(ROOT_LOGGER).handlers.clear()
        line = stream.getvalue().strip()
        assert "[q:q-42]" in line
        assert "(federal_register)" in line
        assert line.endswith("- fetched")
