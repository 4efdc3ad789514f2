"""Root logger setup for relay processes.

A relay process logs to one stream (stdout unless told otherwise), either
as one JSON object per line or as plain text. Fields bound with
``log_context`` during a subscription execution ride along on every line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

from . import fields
from .context import bind_context, get_context

# Fields a reader looks for first when scanning plain-text lines.
_LEADING_FIELDS = (
    fields.SUBSCRIPTION_ID,
    fields.QUERY_NAME,
    fields.DESTINATION,
    fields.OUTCOME,
)


class ContextFilter(logging.Filter):
    """Attach the bound fields to each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


def _bound(record: logging.LogRecord) -> dict[str, str]:
    context = getattr(record, "context", None)
    return context if isinstance(context, dict) else {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record; bound fields never shadow the core ones."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = dict(_bound(record))
        payload.update(
            {
                fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
                fields.LEVEL: record.levelname,
                fields.LOGGER: record.name,
                fields.MESSAGE: record.getMessage(),
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """``<time> <level> <logger> <message> key=value ...`` lines."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = _bound(record)
        if not context:
            return message
        leading = [key for key in _LEADING_FIELDS if key in context]
        rest = sorted(key for key in context if key not in _LEADING_FIELDS)
        suffix = " ".join(f"{key}={context[key]}" for key in (*leading, *rest))
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Install the single root handler and return it.

    Calling again replaces the previous handler. ``service`` and
    ``environment`` are bound as process-wide fields.
    """
    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    bind_context(
        **{fields.SERVICE: service or None, fields.ENVIRONMENT: environment or None}
    )
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)
