"""
Rate Tables - Statutory UK VAT and mileage allowance rates.

Immutable lookup tables shared read-only by every calculator. The values
here are the current statutory defaults; ``ukbooks_config`` builds the same
types from versioned YAML schedules when historical rates are needed.

Usage:
    from ukbooks_engines.rates import DEFAULT_VAT_RATES, VATCategory

    DEFAULT_VAT_RATES.rate_for(VATCategory.STANDARD)  # Decimal("20.00")
    DEFAULT_VAT_RATES.rate_for("LUXURY")              # Decimal("0")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from ukbooks_kernel.exceptions import (
    UnknownVATCategoryError,
    UnknownVehicleCategoryError,
)
from ukbooks_kernel.domain.values import parse_decimal
from ukbooks_kernel.logging_config import get_logger

logger = get_logger("engines.rates")

_ZERO = Decimal("0")


def number_or_zero(value: Any, field_name: str) -> Decimal:
    """
    Numeric input under the permissive policy.

    Anything that is not a finite number counts as zero and is logged,
    mirroring how an unknown category resolves to a zero rate.
    """
    number = parse_decimal(value)
    if number is None:
        logger.warning("numeric_input_defaulted", extra={
            "field": field_name,
            "value": repr(value),
        })
        return _ZERO
    return number


class VATCategory(str, Enum):
    """VAT treatment of a supply."""

    STANDARD = "STANDARD"
    REDUCED = "REDUCED"
    ZERO = "ZERO"  # Zero-rated: taxable at 0%, still reportable
    EXEMPT = "EXEMPT"  # Outside the VAT charge entirely

    @classmethod
    def parse(cls, value: Any) -> VATCategory | None:
        """Return the member for a category value, or None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


class VehicleCategory(str, Enum):
    """Vehicle classes with an HMRC approved mileage allowance rate."""

    CAR = "car"
    VAN = "van"
    MOTORCYCLE = "motorcycle"
    BIKE = "bike"

    @classmethod
    def parse(cls, value: Any) -> VehicleCategory | None:
        """Return the member for a vehicle value, or None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


def _freeze(rates: Mapping[Any, Any], parse) -> MappingProxyType:
    frozen = {}
    for key, value in rates.items():
        member = parse(key)
        if member is None:
            raise ValueError(f"Unknown rate table key: {key!r}")
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
        if rate < _ZERO:
            raise ValueError(f"Rate cannot be negative: {key}={rate}")
        frozen[member] = rate
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class RateTable:
    """
    VAT category -> percentage rate.

    Immutable value object. Unknown categories resolve to a zero rate unless
    ``strict`` is set, in which case they raise UnknownVATCategoryError.
    """

    rates: Mapping[VATCategory, Decimal] = field(hash=False)
    version: str = "default"
    strict: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", _freeze(self.rates, VATCategory.parse))

    def rate_for(self, category: Any) -> Decimal:
        """Percentage rate for a category (e.g. Decimal("20.00"))."""
        member = VATCategory.parse(category)
        if member is not None and member in self.rates:
            return self.rates[member]
        if self.strict:
            logger.error("vat_category_rejected", extra={
                "category": str(category),
                "rate_version": self.version,
            })
            raise UnknownVATCategoryError(category, (c.value for c in self.rates))
        logger.warning("vat_category_defaulted", extra={
            "category": str(category),
            "rate_version": self.version,
        })
        return _ZERO

    def with_strict(self, strict: bool = True) -> RateTable:
        """Copy of this table with a different unknown-category policy."""
        return RateTable(rates=dict(self.rates), version=self.version, strict=strict)

    def __contains__(self, category: Any) -> bool:
        return VATCategory.parse(category) in self.rates


@dataclass(frozen=True)
class MileageRateTable:
    """
    Vehicle category -> GBP per mile.

    Same unknown-category policy as RateTable.
    """

    rates: Mapping[VehicleCategory, Decimal] = field(hash=False)
    version: str = "default"
    strict: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", _freeze(self.rates, VehicleCategory.parse))

    def rate_for(self, vehicle_category: Any) -> Decimal:
        """Pence-per-mile rate in pounds (e.g. Decimal("0.45"))."""
        member = VehicleCategory.parse(vehicle_category)
        if member is not None and member in self.rates:
            return self.rates[member]
        if self.strict:
            logger.error("vehicle_category_rejected", extra={
                "vehicle_category": str(vehicle_category),
                "rate_version": self.version,
            })
            raise UnknownVehicleCategoryError(
                vehicle_category, (c.value for c in self.rates)
            )
        logger.warning("vehicle_category_defaulted", extra={
            "vehicle_category": str(vehicle_category),
            "rate_version": self.version,
        })
        return _ZERO

    def with_strict(self, strict: bool = True) -> MileageRateTable:
        return MileageRateTable(rates=dict(self.rates), version=self.version, strict=strict)


DEFAULT_VAT_RATES = RateTable(
    rates={
        VATCategory.STANDARD: Decimal("20.00"),
        VATCategory.REDUCED: Decimal("5.00"),
        VATCategory.ZERO: Decimal("0.00"),
        VATCategory.EXEMPT: Decimal("0.00"),
    },
    version="UK-2011-04",
)

# HMRC approved mileage allowance payments, first 10,000 business miles
DEFAULT_MILEAGE_RATES = MileageRateTable(
    rates={
        VehicleCategory.CAR: Decimal("0.45"),
        VehicleCategory.VAN: Decimal("0.45"),
        VehicleCategory.MOTORCYCLE: Decimal("0.24"),
        VehicleCategory.BIKE: Decimal("0.20"),
    },
    version="UK-2011-04",
)
