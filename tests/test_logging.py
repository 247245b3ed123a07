"""Smoke tests for structured logging output shape."""

import io
import json
import logging

import pytest

from topicrelay.core.errors import UnauthorizedPublisher
from topicrelay.core.logging import JSONFormatter, configure_logging, get_logger
from topicrelay.core.relay import Relay


@pytest.fixture
def json_stream():
    """Attach a JSON-formatted in-memory handler to the topicrelay logger."""
    logger = logging.getLogger("topicrelay")
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    original_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield stream

    logger.removeHandler(handler)
    logger.setLevel(original_level)


def _records(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


async def test_register_logs_structured_fields(relay: Relay, json_stream):
    publisher_id = await relay.register_publisher("orders")

    records = _records(json_stream)
    registered = [r for r in records if r["message"] == "Registered publisher"]
    assert len(registered) == 1
    record = registered[0]
    assert record["level"] == "INFO"
    assert record["logger"] == "topicrelay.topics"
    assert record["operation"] == "register_publisher"
    assert record["topic"] == "orders"
    assert record["publisher_id"] == publisher_id
    assert "timestamp" in record


async def test_client_error_logged_as_warning(relay: Relay, json_stream):
    await relay.register_publisher("orders")

    with pytest.raises(UnauthorizedPublisher):
        await relay.publish("orders", "wrong-id", "m")

    warnings = [r for r in _records(json_stream) if r["level"] == "WARNING"]
    assert len(warnings) == 1
    assert warnings[0]["operation"] == "publish"
    assert warnings[0]["error_kind"] == "unauthorized_publisher"
    assert warnings[0]["publisher_id"] == "wrong-id"


def test_configure_logging_accepts_level_names():
    original_handlers = logging.getLogger("topicrelay").handlers.copy()
    logger = configure_logging("warning")
    try:
        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers)
    finally:
        logger.handlers = original_handlers
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")


def test_get_logger_stays_in_hierarchy():
    assert get_logger("redis").name == "topicrelay.redis"
    assert get_logger("topicrelay.http").name == "topicrelay.http"
