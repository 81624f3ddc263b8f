"""
Rate Schedule Loader (``ukbooks_config.loader``).

Responsibility
--------------
Loads YAML rate-schedule files and parses them into ``RateScheduleDef``
frozen dataclasses. This is tooling for ``ukbooks_config`` itself; runtime
callers go through ``ukbooks_config.get_rate_schedule()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or rate  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ukbooks_config.schema import RateScheduleDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_rate(value: Any) -> Decimal:
    """Parse a rate, keeping it exact (quoted strings preferred in YAML)."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse rate from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse rate from {value!r}") from e


def parse_rates(data: dict[str, Any] | None) -> tuple[tuple[str, Decimal], ...]:
    """Parse a ``category: rate`` mapping into an ordered tuple of pairs."""
    return tuple((str(key), parse_rate(value)) for key, value in (data or {}).items())


def parse_rate_schedule(
    data: dict[str, Any], source_path: str | None = None
) -> RateScheduleDef:
    """
    Parse a ``RateScheduleDef`` from a dict.

    Raises:
        KeyError: if ``version``, ``effective_from``, ``vat_rates`` or
            ``mileage_rates`` is missing.
        ValueError: if a date or rate cannot be parsed.
    """
    return RateScheduleDef(
        version=str(data["version"]),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
        vat_rates=parse_rates(data["vat_rates"]),
        mileage_rates=parse_rates(data["mileage_rates"]),
        description=data.get("description", ""),
        source_path=source_path,
    )


def load_rate_schedules(config_dir: Path) -> list[RateScheduleDef]:
    """
    Load every ``*.yaml`` schedule in a directory, sorted by effective date.

    Raises:
        FileNotFoundError: if ``config_dir`` is not a directory.
    """
    if not config_dir.is_dir():
        raise FileNotFoundError(f"Rate schedule directory not found: {config_dir}")

    schedules = [
        parse_rate_schedule(load_yaml_file(path), source_path=str(path))
        for path in sorted(config_dir.glob("*.yaml"))
    ]
    return sorted(schedules, key=lambda s: s.effective_from)


def compute_checksum(definition: RateScheduleDef) -> str:
    """Deterministic SHA-256 of a schedule's rate content."""
    canonical = {
        "version": definition.version,
        "effective_from": definition.effective_from.isoformat(),
        "effective_to": definition.effective_to.isoformat() if definition.effective_to else None,
        "vat_rates": sorted((k, str(v)) for k, v in definition.vat_rates),
        "mileage_rates": sorted((k, str(v)) for k, v in definition.mileage_rates),
    }
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
