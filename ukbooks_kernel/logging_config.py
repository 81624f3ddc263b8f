"""
Structured JSON logging for UK Books.

One JSON object per log line. Request-scoped bookkeeping ids (request,
company, invoice) ride in a single context variable so an engine deep in a
pricing call stamps them on its lines without taking them as arguments.
Money, Decimal, dates, UUIDs, enums and dataclass DTOs are rendered the way
the JSON responses render them.

Usage::

    configure_logging()
    logger = get_logger("modules.invoice.service")

    with LogContext.bind(company_id=company_id, request_id=request_id):
        logger.info("invoice_pricing_started", extra={"line_count": 3})
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from ukbooks_kernel.domain.values import Money

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_NAMESPACE = "ukbooks"

# Ids a request handler may bind for every line its call produces
CONTEXT_FIELDS = ("request_id", "company_id", "invoice_id")

_EMPTY_CONTEXT: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar(
    "ukbooks_log_context", default=_EMPTY_CONTEXT
)


class LogContext:
    """Request-scoped ids merged into every structured log line."""

    @staticmethod
    def current() -> dict[str, str]:
        """Copy of the ids bound in the current context."""
        return dict(_context.get())

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """
        Bind ids for the duration of a ``with`` block.

        None values are skipped and everything else is stringified, so a
        UUID straight from a request body can be passed as is. Nested binds
        layer over the outer ones; the outer values return on exit.

        Raises:
            ValueError: If a field is not one of CONTEXT_FIELDS.
        """
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise ValueError(f"Unknown log context field(s): {', '.join(unknown)}")

        merged = dict(_context.get())
        merged.update({name: str(value) for name, value in fields.items() if value is not None})
        token = _context.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _context.reset(token)

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY_CONTEXT)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    """``json.dumps`` fallback for the value types the engines log."""
    if isinstance(value, Money):
        return value.to_str()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # UKBooksError subclasses keep their structured arguments as attributes
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }

        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS and name not in payload:
                payload[name] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``ukbooks`` namespace (``get_logger("engines.vat")``)."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_lock = threading.Lock()


def _structured_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "ukbooks_structured", False)]


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Attach the JSON handler to the ``ukbooks`` logger.

    Idempotent: once a structured handler is installed, later calls return
    the logger unchanged. The logger stops propagating so host applications
    do not print every line twice.
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        if _structured_handlers(logger):
            return logger

        installed = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        installed.setFormatter(StructuredFormatter())
        installed.ukbooks_structured = True
        logger.addHandler(installed)
        logger.setLevel(level)
        logger.propagate = False
    return logger


def reset_logging() -> None:
    """Remove the structured handler and restore defaults. For tests."""
    logger = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        for h in _structured_handlers(logger):
            logger.removeHandler(h)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
