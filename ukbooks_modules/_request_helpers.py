"""Shared helpers for reading request values and stored records."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any


def parse_request_date(value: Any) -> date:
    """
    Calendar date from a validated request value.

    Accepts ``date``, ``datetime`` and ISO 8601 strings (a trailing ``Z`` is
    read as UTC). Datetimes keep their own calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    raise ValueError(f"Cannot parse date from {value!r}")


_MISSING = object()


def record_field(record: Any, *names: str) -> Any:
    """First present field of a stored record (mapping or object), else None."""
    for name in names:
        if isinstance(record, Mapping):
            value = record.get(name, _MISSING)
        else:
            value = getattr(record, name, _MISSING)
        if value is not _MISSING:
            return value
    return None
