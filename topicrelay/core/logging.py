"""Structured JSON logging for topicrelay."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Derived at import time so newer LogRecord attributes (like taskName) are skipped too
_STANDARD_LOGRECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
)


class JSONFormatter(logging.Formatter):
    """JSON formatter with UTC ISO8601 timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for field in ("operation", "topic", "subscriber_id", "publisher_id"):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        for key, value in vars(record).items():
            if key not in _STANDARD_LOGRECORD_KEYS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, default=str)
        except Exception:
            return str(log_data)


def _setup_json_handler(logger: logging.Logger, level: int) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure the root ``topicrelay`` logger with JSON output.

    Child loggers (``topicrelay.relay``, ``topicrelay.redis`` ...) propagate
    to it, so one call at process start is enough.

    Args:
        level: A logging level number or name such as ``"DEBUG"``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")
    logger = logging.getLogger("topicrelay")
    _setup_json_handler(logger, level)
    return logger


def get_logger(name: str = "topicrelay") -> logging.Logger:
    """Return a logger in the ``topicrelay`` hierarchy."""
    if name != "topicrelay" and not name.startswith("topicrelay."):
        name = f"topicrelay.{name}"
    return logging.getLogger(name)
