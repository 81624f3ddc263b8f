"""
Mileage Engine - HMRC approved mileage allowance claims.

Converts business miles into a claimable expense using the per-vehicle
rate table. Unknown vehicle categories claim nothing (zero rate) unless the
rate table is strict.

Usage:
    from ukbooks_engines.mileage import calculate_mileage_expense

    calculate_mileage_expense(1000, "car")  # Money: 450.00 GBP
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ukbooks_engines.rates import (
    DEFAULT_MILEAGE_RATES,
    MileageRateTable,
    VehicleCategory,
    number_or_zero,
)
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.logging_config import get_logger

logger = get_logger("engines.mileage")


@dataclass(frozen=True)
class MileageClaim:
    """A mileage claim and the rate it was priced at."""

    miles: Decimal
    vehicle_category: VehicleCategory | str
    rate: Decimal
    claim_amount: Money
    rate_version: str

    def to_dict(self) -> dict[str, str]:
        return {
            "miles": format(self.miles, "f"),
            "vehicleCategory": str(getattr(self.vehicle_category, "value", self.vehicle_category)),
            "rate": format(self.rate, "f"),
            "claimAmount": self.claim_amount.to_str(),
            "rateVersion": self.rate_version,
        }


class MileageCalculator:
    """
    Price mileage claims.

    Stateless apart from the immutable rate table.
    """

    def __init__(self, rates: MileageRateTable | None = None):
        self.rates = rates or DEFAULT_MILEAGE_RATES

    def calculate_claim(
        self,
        miles: Decimal | int | str | float,
        vehicle_category: VehicleCategory | str,
    ) -> MileageClaim:
        """
        Price a mileage claim.

        Args:
            miles: Business miles travelled
            vehicle_category: car, van, motorcycle or bike

        Returns:
            MileageClaim with claim_amount = round(miles * rate, 2)

        Raises:
            UnknownVehicleCategoryError: Only when the rate table is strict
        """
        miles_value = number_or_zero(miles, "miles")
        rate = self.rates.rate_for(vehicle_category)
        parsed = VehicleCategory.parse(vehicle_category)

        claim = MileageClaim(
            miles=miles_value,
            vehicle_category=parsed if parsed is not None else vehicle_category,
            rate=rate,
            claim_amount=Money.of(miles_value * rate).round(),
            rate_version=self.rates.version,
        )

        logger.info("mileage_claim_calculated", extra={
            "miles": str(miles_value),
            "vehicle_category": str(getattr(vehicle_category, "value", vehicle_category)),
            "rate": str(rate),
            "claim_amount": claim.claim_amount.to_str(),
            "rate_version": self.rates.version,
        })
        return claim

    def calculate_expense(
        self,
        miles: Decimal | int | str | float,
        vehicle_category: VehicleCategory | str,
    ) -> Money:
        """Claim amount only."""
        return self.calculate_claim(miles, vehicle_category).claim_amount


_DEFAULT_CALCULATOR = MileageCalculator()


def calculate_mileage_expense(
    miles: Decimal | int | str | float,
    vehicle_category: VehicleCategory | str,
) -> Money:
    """Mileage claim amount at the default HMRC rates."""
    return _DEFAULT_CALCULATOR.calculate_expense(miles, vehicle_category)
