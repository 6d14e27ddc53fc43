"""JSON structured logging for the worker and the CLI.

Enrichment failures never reach the user who wrote the post, so the JSON log
stream is the only place they surface. Every record logged while the worker
handles an event carries that event's trace fields (see
``packages.common.tracing``).
"""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from packages.common.config import get_config

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

# Libraries that log every request or connection at INFO.
NOISY_LOGGERS = ("httpx", "httpcore")


class CorrelationIdFilter(logging.Filter):
    """Copy the bound event trace onto each record.

    Fields passed explicitly through ``extra`` win over the trace.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        from packages.common.tracing import current_trace

        trace = current_trace()
        record.correlation_id = trace.correlation_id if trace else None
        if trace is not None:
            for key, value in trace.as_log_fields().items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level, logger and source location."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        if getattr(record, "correlation_id", None):
            log_record["correlation_id"] = record.correlation_id
        else:
            log_record.pop("correlation_id", None)


def setup_logging(level: str | None = None) -> None:
    """Route all logging to stdout as JSON lines.

    Args:
        level: Log level override; falls back to ``LOG_LEVEL`` from config.

    Example:
        >>> setup_logging("DEBUG")
        >>> get_logger(__name__).info("Enriched post", extra={"post_id": "abc123"})
    """
    log_level = (level or get_config().log_level).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "LOG_FORMAT",
    "CorrelationIdFilter",
    "CustomJsonFormatter",
    "get_logger",
    "setup_logging",
]
