"""
Rate schedule schema.

Defines the human-authored, reviewable source artifact for statutory
rates. YAML files are parsed into these types by the loader, checked by
the validator, and turned into engine rate tables by ``RateSchedule``.

Key distinction:
  RateScheduleDef = source artifact (human-authored, versioned)
  RateSchedule    = runtime artifact (validated, frozen, engine-ready)
  RateScheduleSet = every RateSchedule of a directory, loaded once
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from ukbooks_engines.rates import MileageRateTable, RateTable


@dataclass(frozen=True)
class RateScheduleDef:
    """One version of the statutory VAT and mileage rates."""

    version: str
    effective_from: date
    vat_rates: tuple[tuple[str, Decimal], ...]
    mileage_rates: tuple[tuple[str, Decimal], ...]
    effective_to: date | None = None
    description: str = ""
    source_path: str | None = None

    def covers(self, on_date: date) -> bool:
        if on_date < self.effective_from:
            return False
        if self.effective_to is not None and on_date > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class RateSchedule:
    """
    Engine-ready rate tables for one schedule version.

    Holds the checksum of the source definition so an invoice priced with
    it can be traced back to the exact configuration.
    """

    version: str
    effective_from: date
    effective_to: date | None
    vat_rates: RateTable
    mileage_rates: MileageRateTable
    checksum: str
    source_path: str | None = None

    def covers(self, on_date: date) -> bool:
        if on_date < self.effective_from:
            return False
        return self.effective_to is None or on_date <= self.effective_to

    @property
    def strict(self) -> bool:
        return self.vat_rates.strict

    def with_strict(self, strict: bool = True) -> RateSchedule:
        """Same rates under a different unknown-category policy."""
        if strict == self.strict:
            return self
        return replace(
            self,
            vat_rates=self.vat_rates.with_strict(strict),
            mileage_rates=self.mileage_rates.with_strict(strict),
        )

    @classmethod
    def from_definition(
        cls, definition: RateScheduleDef, checksum: str, strict: bool = False
    ) -> RateSchedule:
        return cls(
            version=definition.version,
            effective_from=definition.effective_from,
            effective_to=definition.effective_to,
            vat_rates=RateTable(
                rates=dict(definition.vat_rates),
                version=definition.version,
                strict=strict,
            ),
            mileage_rates=MileageRateTable(
                rates=dict(definition.mileage_rates),
                version=definition.version,
                strict=strict,
            ),
            checksum=checksum,
            source_path=definition.source_path,
        )


@dataclass(frozen=True)
class RateScheduleSet:
    """
    Validated schedules of one configuration directory, oldest first.

    Built once by ``load_rate_schedule_set``; picking the schedule for a
    date afterwards needs no file access.
    """

    schedules: tuple[RateSchedule, ...]
    source: str

    @property
    def versions(self) -> tuple[str, ...]:
        return tuple(s.version for s in self.schedules)

    def covering(self, on_date: date) -> RateSchedule | None:
        for schedule in self.schedules:
            if schedule.covers(on_date):
                return schedule
        return None
