"""
Tests for the mileage engine.

Covers:
- HMRC approved mileage rates per vehicle
- Claim rounding
- Unknown vehicles (permissive and strict)
"""

from decimal import Decimal

import pytest

from ukbooks_engines.mileage import (
    MileageCalculator,
    MileageClaim,
    calculate_mileage_expense,
)
from ukbooks_engines.rates import (
    DEFAULT_MILEAGE_RATES,
    MileageRateTable,
    VehicleCategory,
)
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.exceptions import UnknownVehicleCategoryError


class TestCalculateMileageExpense:
    """Tests for the convenience function."""

    def test_car_thousand_miles(self):
        assert calculate_mileage_expense(1000, "car") == Money.of("450.00")

    def test_bike_hundred_miles(self):
        assert calculate_mileage_expense(100, "bike") == Money.of("20.00")

    def test_motorcycle(self):
        assert calculate_mileage_expense(250, VehicleCategory.MOTORCYCLE) == Money.of("60.00")

    def test_unknown_vehicle_claims_nothing(self):
        assert calculate_mileage_expense(1000, "lorry").is_zero

    def test_claim_rounded_half_up(self):
        # 12.5 miles x 0.45 = 5.625
        assert calculate_mileage_expense("12.5", "van") == Money.of("5.63")

    def test_fractional_float_miles(self):
        assert calculate_mileage_expense(10.1, "car") == Money.of("4.55")


class TestMileageCalculator:
    """Tests for full claims."""

    def setup_method(self):
        self.calculator = MileageCalculator()

    def test_claim_records_rate(self):
        claim = self.calculator.calculate_claim(100, "car")

        assert isinstance(claim, MileageClaim)
        assert claim.miles == Decimal("100")
        assert claim.rate == Decimal("0.45")
        assert claim.vehicle_category is VehicleCategory.CAR
        assert claim.claim_amount == Money.of("45.00")
        assert claim.rate_version == DEFAULT_MILEAGE_RATES.version

    def test_to_dict(self):
        data = self.calculator.calculate_claim(100, "bike").to_dict()
        assert data == {
            "miles": "100",
            "vehicleCategory": "bike",
            "rate": "0.20",
            "claimAmount": "20.00",
            "rateVersion": "UK-2011-04",
        }

    def test_custom_rates(self):
        table = MileageRateTable(rates={"car": "0.40"}, version="UK-2010-01")
        calculator = MileageCalculator(table)
        assert calculator.calculate_expense(1000, "car") == Money.of("400.00")

    def test_strict_rejects_unknown_vehicle(self):
        calculator = MileageCalculator(DEFAULT_MILEAGE_RATES.with_strict())
        with pytest.raises(UnknownVehicleCategoryError, match="lorry"):
            calculator.calculate_claim(10, "lorry")

    def test_malformed_miles_claim_nothing(self):
        assert self.calculator.calculate_expense("far", "car").is_zero

    def test_logs_claim(self, captured_logs):
        self.calculator.calculate_claim(1000, "car")

        logged = [r for r in captured_logs() if r["message"] == "mileage_claim_calculated"]
        assert logged[0]["claim_amount"] == "450.00"
