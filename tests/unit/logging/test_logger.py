# tests/unit/logging/test_logger.py — v2
"""Tests for logging/logger.py — formatters and setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from lexresearch.logging.context import clear_context, set_query_context, set_source_context
from lexresearch.logging.logger import (
    ROOT_LOGGER,
    JsonFormatter,
    TextFormatter,
    parse_size,
    setup_logging,
)


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_query_context("q1", "u1", "FAST")
        set_source_context("courtlistener")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "query_id": "q1", "user_id": "u1", "mode": "FAST", "source": "courtlistener",
        }

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"results": 3})))
        assert parsed["data"] == {"results": 3}

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        set_query_context("q42", None)
        set_source_context("official")
        output = TextFormatter().format(_record())
        assert "[q:q42]" in output
        assert "(official)" in output


class TestParseSize:
    def test_units(self):
        assert parse_size("10MB") == 10 * 1024**2
        assert parse_size("5 kb") == 5 * 1024
        assert parse_size("1GB") == 1024**3

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("lots")


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_stream_and_level(self):
        stream = io.StringIO()
        logger = setup_logging(level="DEBUG", log_format="json", stream=stream)
        assert logger.name == ROOT_LOGGER
        assert logger.level == logging.DEBUG
        logging.getLogger("lexresearch.cache").debug("cached")
        assert json.loads(stream.getvalue().strip())["message"] == "cached"

    def test_text_format(self):
        stream = io.StringIO()
        setup_logging(log_format="text", stream=stream)
        logging.getLogger("lexresearch.x").info("hello")
        assert "- hello" in stream.getvalue()

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "lexresearch.log"
        logger = setup_logging(log_file=log_file, stream=io.StringIO())
        assert len(logger.handlers) == 2
        logger.info("to file")
        for handler in logger.handlers:
            handler.flush()
        assert "to file" in log_file.read_text(encoding="utf-8")

    def test_idempotent_handlers(self):
        setup_logging(stream=io.StringIO())
        logger = setup_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1
