"""Tests for structured JSON logging configuration and output."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from codesearch.logging_config import (
    HealthCheckFilter,
    RequestIDFilter,
    build_json_formatter,
    configure_json_logging,
)
from codesearch.utils.request_context import reset_request_id, set_request_id


@pytest.fixture
def json_logger() -> logging.Logger:
    """Create a logger writing JSON lines to an in-memory stream."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_json_formatter())
    handler.addFilter(RequestIDFilter())

    logger = logging.getLogger("test_codesearch_logger")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    yield logger

    logger.removeHandler(handler)
    handler.close()


def read_record(logger: logging.Logger) -> dict:
    stream = logger.handlers[0].stream  # type: ignore[attr-defined]
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_structured_logging_outputs_json(json_logger: logging.Logger) -> None:
    json_logger.info("Search completed", extra={"total_files": 3, "backend": "rg"})

    record = read_record(json_logger)

    assert record["message"] == "Search completed"
    assert record["level"] == "INFO"
    assert record["total_files"] == 3
    assert record["backend"] == "rg"
    assert "timestamp" in record


def test_request_id_from_context(json_logger: logging.Logger) -> None:
    token = set_request_id("req-123")
    try:
        json_logger.info("inside request")
    finally:
        reset_request_id(token)

    assert read_record(json_logger)["request_id"] == "req-123"


def test_request_id_placeholder_outside_request(json_logger: logging.Logger) -> None:
    json_logger.info("no request")
    assert read_record(json_logger)["request_id"] == "no-request-id"


def test_health_check_filter() -> None:
    health_filter = HealthCheckFilter()

    def record(message: str) -> logging.LogRecord:
        return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, None, None)

    assert not health_filter.filter(record('127.0.0.1 - "GET /health HTTP/1.1" 200'))
    assert health_filter.filter(record('127.0.0.1 - "GET /health/ready HTTP/1.1" 503'))
    assert health_filter.filter(record('127.0.0.1 - "POST /api/v1/search HTTP/1.1" 200'))


def test_configure_json_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    try:
        configure_json_logging("debug", use_json=True)
        configure_json_logging("INFO", use_json=False)

        assert len(root.handlers) == 1
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
