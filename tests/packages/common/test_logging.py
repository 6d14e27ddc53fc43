"""Tests for structured logging and event tracing."""

import io
import json
import logging

from packages.common.logging import LOG_FORMAT, CorrelationIdFilter, CustomJsonFormatter
from packages.common.tracing import TracingContext, current_trace, get_correlation_id


def make_logger(stream: io.StringIO) -> logging.Logger:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logger = logging.getLogger("tests.json")
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.INFO)
    return logger


def test_json_lines_carry_extra_fields_and_trace() -> None:
    stream = io.StringIO()
    logger = make_logger(stream)

    with TracingContext("resource-123", topic="post.events", event_type="post.created"):
        logger.info("Enriched post", extra={"post_id": "abc"})

    record = json.loads(stream.getvalue())
    assert record["message"] == "Enriched post"
    assert record["level"] == "INFO"
    assert record["post_id"] == "abc"
    assert record["correlation_id"] == "resource-123"
    assert record["topic"] == "post.events"
    assert record["event_type"] == "post.created"


def test_explicit_extra_wins_over_trace() -> None:
    stream = io.StringIO()
    logger = make_logger(stream)

    with TracingContext("resource-123", topic="post.events"):
        logger.info("Redirected", extra={"topic": "media.events"})

    assert json.loads(stream.getvalue())["topic"] == "media.events"


def test_records_outside_a_trace_have_no_correlation_id() -> None:
    stream = io.StringIO()
    logger = make_logger(stream)

    logger.info("Worker starting")

    assert "correlation_id" not in json.loads(stream.getvalue())


def test_tracing_context_restores_outer_trace() -> None:
    with TracingContext("outer", topic="media.events"):
        with TracingContext("inner") as inner:
            assert inner == "inner"
            assert current_trace().topic is None
        assert get_correlation_id() == "outer"
        assert current_trace().topic == "media.events"

    assert get_correlation_id() is None
