"""Structured logging helpers for the OpenAPI client."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import override

__all__ = ["REDACTED_FIELDS", "JsonFormatter", "configure_logging"]

_STRUCTURED_RESERVED_KEYS: tuple[str, ...] = (
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
)

# Never written to log output, whatever a caller passes in ``extra``.
REDACTED_FIELDS: frozenset[str] = frozenset(
    {"private_key", "secret_key", "sign", "signature", "token", "biz_content"}
)


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        context: dict[str, object] = {}
        for key, value in record.__dict__.items():
            if key in _STRUCTURED_RESERVED_KEYS:
                continue
            context[key] = "***" if key in REDACTED_FIELDS else value

        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, default=str)


def configure_logging(
    level: int = logging.WARNING,
    *,
    json_output: bool = False,
    logger: logging.Logger | None = None,
) -> logging.Handler:
    """Attach a stream handler to the ``tigeropen`` logger.

    Args:
        level: Logging verbosity level.
        json_output: Emit :class:`JsonFormatter` lines instead of plain text.
        logger: Target logger; defaults to the package logger.

    Returns:
        The installed handler, so callers can remove it again.
    """

    target = logger or logging.getLogger("tigeropen")
    target.setLevel(level)
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    target.addHandler(handler)
    return handler
