"""Structured logging configuration.

Uses standard library logging with a JSON formatter. Diagnostics go to stderr
so that command output on stdout stays machine-readable.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

DEBUG_ENV_VAR = "BD_DEBUG"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are nested under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def debug_enabled() -> bool:
    """Whether ``BD_DEBUG`` asks for diagnostic output."""

    return bool(os.environ.get(DEBUG_ENV_VAR))


def default_level() -> str:
    return "DEBUG" if debug_enabled() else "WARNING"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging with structured JSON output on stderr."""

    root = logging.getLogger()

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel((level or default_level()).upper())
