"""
Rate schedule validation.

Checks a set of parsed schedules before any of them is turned into engine
rate tables: every VAT and vehicle category present, rates non-negative,
effective ranges well-formed, non-overlapping, and versions unique.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from ukbooks_config.schema import RateScheduleDef
from ukbooks_engines.rates import VATCategory, VehicleCategory


@dataclass(frozen=True)
class ScheduleValidationResult:
    """Outcome of validating a set of rate schedules."""

    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_rates(
    schedule: RateScheduleDef,
    label: str,
    rates: tuple[tuple[str, Decimal], ...],
    required: frozenset[str],
) -> list[str]:
    errors: list[str] = []
    keys = [key for key, _ in rates]
    for key in sorted(required - set(keys)):
        errors.append(f"{schedule.version}: {label} missing {key}")
    for key in sorted(set(keys) - required):
        errors.append(f"{schedule.version}: {label} has unknown key {key}")
    for key, rate in rates:
        if rate < 0:
            errors.append(f"{schedule.version}: {label} {key} is negative ({rate})")
    return errors


def validate_schedules(schedules: Sequence[RateScheduleDef]) -> ScheduleValidationResult:
    """Validate a collection of schedules as a whole."""
    errors: list[str] = []
    vat_keys = frozenset(c.value for c in VATCategory)
    vehicle_keys = frozenset(c.value for c in VehicleCategory)

    if not schedules:
        errors.append("no rate schedules defined")

    seen_versions: set[str] = set()
    for schedule in schedules:
        if schedule.version in seen_versions:
            errors.append(f"{schedule.version}: duplicate version")
        seen_versions.add(schedule.version)

        if schedule.effective_to and schedule.effective_to < schedule.effective_from:
            errors.append(
                f"{schedule.version}: effective_to {schedule.effective_to} "
                f"before effective_from {schedule.effective_from}"
            )
        errors.extend(_check_rates(schedule, "vat_rates", schedule.vat_rates, vat_keys))
        errors.extend(
            _check_rates(schedule, "mileage_rates", schedule.mileage_rates, vehicle_keys)
        )

    ordered = sorted(schedules, key=lambda s: s.effective_from)
    for earlier, later in zip(ordered, ordered[1:]):
        if earlier.effective_to is None or earlier.effective_to >= later.effective_from:
            errors.append(
                f"{earlier.version} overlaps {later.version} "
                f"(starts {later.effective_from})"
            )

    return ScheduleValidationResult(errors=tuple(errors))
