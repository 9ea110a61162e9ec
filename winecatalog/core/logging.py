"""
Wine Catalog - Structured Logging

Application code logs through the standard library (``logging.getLogger``)
or loguru (database, security and identity layers). Both end up in the
same root handler:

- prod: one JSON object per line
- dev/staging: ``HH:MM:SS LEVEL logger [request_id user_id] message``

Per-request fields (request_id, user_id) live in a context variable and are
attached to every line logged while the request is being served.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from loguru import logger as loguru_logger

# =============================================================================
# Request context
# =============================================================================

_context: ContextVar[dict[str, Any]] = ContextVar("winecatalog_log_context", default={})


def start_request(request_id: str) -> None:
    """Replace the context with a fresh one for a new request."""
    _context.set({"request_id": request_id})


def bind(**fields: Any) -> None:
    """Add fields to the current request's context."""
    _context.set({**_context.get(), **fields})


def current_context() -> dict[str, Any]:
    return dict(_context.get())


def get_request_id() -> str:
    return _context.get().get("request_id", "")


# =============================================================================
# Formatters
# =============================================================================

SECRET_MARKERS = ("password", "secret", "token", "authorization", "api_key", "service_role")

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def scrub(fields: dict[str, Any]) -> dict[str, Any]:
    """Mask values whose key looks like a credential."""
    return {
        key: "[REDACTED]" if any(marker in key.lower() for marker in SECRET_MARKERS) else value
        for key, value in fields.items()
    }


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and not k.startswith("_")}


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record: context, ``extra=`` fields and any exception."""

    def __init__(self, service_name: str = "winecatalog"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(scrub({**current_context(), **_extra_fields(record)}))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for local development."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s%(tags)s %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        context = current_context()
        tags = " ".join(str(context[key]) for key in ("request_id", "user_id") if context.get(key))
        record.tags = f" [{tags}]" if tags else ""
        return super().format(record)


# =============================================================================
# Setup
# =============================================================================


class _ToStdlib(logging.Handler):
    """loguru sink that hands records to the matching stdlib logger."""

    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


def configure_structured_logging(
    level: str = "INFO",
    json_output: bool = True,
    service_name: str = "winecatalog",
) -> None:
    """
    Install a single stdout handler on the root logger and route loguru
    into it. Safe to call more than once; earlier handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter(service_name) if json_output else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    loguru_logger.remove()
    loguru_logger.add(_ToStdlib(), level=level.upper(), format="{message}")
