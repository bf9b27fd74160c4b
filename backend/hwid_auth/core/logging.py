"""
Structured logging setup for the authorization service.

Uses LOG_LEVEL from settings (hwid_auth.core.config) and installs a JSON
formatter on the root logger. Call init_logging() once during startup (the
FastAPI app and the admin CLI both do).

Usage:
    from hwid_auth.core.logging import init_logging, get_logger
    init_logging()
    log = get_logger(__name__)
    log.info("tenant approved", extra={"hwid": hwid, "tenant_id": tenant_id})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from hwid_auth.core.config import get_settings

__all__ = ["JsonFormatter", "init_logging", "get_logger"]


# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    {
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
    }
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record with stable keys plus any `extra` fields."""

    default_time_format = "%Y-%m-%dT%H:%M:%S%z"

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                self.default_time_format
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in payload:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = str(value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


_configured: bool = False


def _to_log_level(level: Optional[str]) -> int:
    name = (level or "INFO").upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def init_logging(level: Optional[str] = None) -> None:
    """
    Initialize logging with a JSON formatter on stdout.

    The level comes from the argument when given, else from settings.
    Idempotent: safe to call multiple times.
    """
    global _configured
    if _configured:
        return

    resolved = _to_log_level(level or get_settings().log_level)

    root = logging.getLogger()
    root.setLevel(resolved)

    # Drop pre-existing handlers so records are not emitted twice
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(resolved)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a named logger; handlers are inherited from the root logger."""
    return logging.getLogger(name if name else "hwid_auth")
