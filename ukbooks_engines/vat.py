"""
VAT Engine - Per-line VAT and invoice totals.

Pure functions with no I/O. Rates come from a RateTable (the statutory
defaults unless one is supplied).

Rounding policy:
    Each line rounds net, VAT and gross independently to pence (half away
    from zero). Invoice totals are sums of those already-rounded line
    values, never a re-rounding of raw sums. Switching the order changes
    totals by a penny in edge cases, so it must not be changed.

Usage:
    from ukbooks_engines.vat import aggregate_invoice, calculate_line

    line = calculate_line(2, "100.00", "STANDARD")
    print(line.vat_amount)  # Money: 40.00 GBP

    totals = aggregate_invoice(
        [
            {"quantity": 1, "unitPrice": "100.00", "vatCategory": "STANDARD"},
            {"quantity": 1, "unitPrice": "40.00", "vatCategory": "REDUCED"},
        ],
        vat_registered=True,
    )
    print(totals.total)  # Money: 162.00 GBP
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ukbooks_engines.rates import (
    DEFAULT_VAT_RATES,
    RateTable,
    VATCategory,
    number_or_zero,
)
from ukbooks_kernel.domain.values import Money, parse_decimal
from ukbooks_kernel.logging_config import get_logger

logger = get_logger("engines.vat")

_HUNDRED = Decimal("100")

# Every key spelling the invoice payloads have used for the same fields
_UNIT_PRICE_KEYS = ("unitPrice", "unit_price")
_CATEGORY_KEYS = ("vatCategory", "vat_category", "vatType", "vatScheme")


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class LineItem:
    """
    A single billable row on an invoice.

    Input value owned by the caller. Positivity of quantity and unit price
    is enforced by request validation, not here. A value that is not a
    number is kept as given and priced as zero by the calculator.
    """

    quantity: Decimal
    unit_price: Decimal
    vat_category: VATCategory | str
    description: str = ""

    def __post_init__(self) -> None:
        for name in ("quantity", "unit_price"):
            number = parse_decimal(getattr(self, name))
            if number is not None:
                object.__setattr__(self, name, number)
        parsed = VATCategory.parse(self.vat_category)
        if parsed is not None:
            object.__setattr__(self, "vat_category", parsed)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LineItem:
        """Build a LineItem from a request-shaped dict."""
        return cls(
            quantity=data.get("quantity"),
            unit_price=_first_present(data, _UNIT_PRICE_KEYS),
            vat_category=_first_present(data, _CATEGORY_KEYS),
            description=data.get("description") or "",
        )

    @classmethod
    def coerce(cls, item: LineItem | Mapping[str, Any]) -> LineItem:
        if isinstance(item, LineItem):
            return item
        return cls.from_mapping(item)


@dataclass(frozen=True)
class LineCalculationResult:
    """
    Calculated amounts for one line.

    Each field is rounded to pence on its own; total_with_vat is the rounded
    raw gross, so it can differ by a penny from line_total + vat_amount.
    """

    line_total: Money
    vat_amount: Money
    total_with_vat: Money
    vat_category: VATCategory | str
    rate_applied: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "lineTotal": self.line_total.to_str(),
            "vatAmount": self.vat_amount.to_str(),
            "totalWithVAT": self.total_with_vat.to_str(),
        }


def _empty_breakdown() -> dict[VATCategory, Money]:
    return {category: Money.zero() for category in VATCategory}


@dataclass(frozen=True)
class InvoiceTotals:
    """
    Invoice-level totals.

    vat_breakdown always carries all four VAT categories. When the business
    is not VAT registered, vat and every breakdown value stay at zero while
    subtotal still reflects the full net value.
    """

    subtotal: Money
    vat: Money
    total: Money
    vat_breakdown: Mapping[VATCategory, Money] = field(default_factory=_empty_breakdown)
    vat_registered: bool = True
    rate_version: str = DEFAULT_VAT_RATES.version

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal.to_str(),
            "vat": self.vat.to_str(),
            "total": self.total.to_str(),
            "vatBreakdown": {
                category.value: amount.to_str()
                for category, amount in self.vat_breakdown.items()
            },
            "rateVersion": self.rate_version,
        }


class VATCalculator:
    """
    Calculate line VAT and invoice totals.

    Pure functions - no I/O, no state beyond the immutable rate table.
    Safe to share between threads.
    """

    def __init__(self, rates: RateTable | None = None):
        self.rates = rates or DEFAULT_VAT_RATES

    def calculate_line(
        self,
        quantity: Decimal | int | str | float,
        unit_price: Decimal | int | str | float,
        category: VATCategory | str,
    ) -> LineCalculationResult:
        """
        Calculate net, VAT and gross for one line.

        Args:
            quantity: Number of units
            unit_price: Price per unit in pounds
            category: VAT category (unknown -> zero rate, unless strict)

        Returns:
            LineCalculationResult with each amount rounded to pence

        Raises:
            UnknownVATCategoryError: Only when the rate table is strict
        """
        rate = self.rates.rate_for(category)
        net = number_or_zero(quantity, "quantity") * number_or_zero(unit_price, "unit_price")
        vat = net * rate / _HUNDRED

        parsed = VATCategory.parse(category)
        result = LineCalculationResult(
            line_total=Money.of(net).round(),
            vat_amount=Money.of(vat).round(),
            total_with_vat=Money.of(net + vat).round(),
            vat_category=parsed if parsed is not None else category,
            rate_applied=rate,
        )

        logger.debug("vat_line_calculated", extra={
            "quantity": str(quantity),
            "unit_price": str(unit_price),
            "category": str(getattr(category, "value", category)),
            "rate": str(rate),
            "line_total": result.line_total.to_str(),
            "vat_amount": result.vat_amount.to_str(),
        })
        return result

    def price_lines(
        self,
        line_items: Iterable[LineItem | Mapping[str, Any]],
    ) -> tuple[LineCalculationResult, ...]:
        """Per-line results in input order."""
        results = []
        for item in line_items:
            line = LineItem.coerce(item)
            results.append(
                self.calculate_line(line.quantity, line.unit_price, line.vat_category)
            )
        return tuple(results)

    def aggregate_invoice(
        self,
        line_items: Iterable[LineItem | Mapping[str, Any]],
        vat_registered: bool = True,
    ) -> InvoiceTotals:
        """
        Sum line calculations into invoice totals.

        Args:
            line_items: LineItem objects or request-shaped dicts
            vat_registered: False for a business that records sales
                without charging VAT

        Returns:
            InvoiceTotals with all four breakdown categories present
        """
        t0 = time.monotonic()
        items = [LineItem.coerce(item) for item in line_items]

        logger.info("invoice_totals_started", extra={
            "line_count": len(items),
            "vat_registered": vat_registered,
            "rate_version": self.rates.version,
        })

        subtotal = Money.zero()
        vat_total = Money.zero()
        breakdown = _empty_breakdown()

        for item in items:
            calc = self.calculate_line(item.quantity, item.unit_price, item.vat_category)
            subtotal = subtotal + calc.line_total

            if vat_registered:
                vat_total = vat_total + calc.vat_amount
                if isinstance(calc.vat_category, VATCategory):
                    breakdown[calc.vat_category] = (
                        breakdown[calc.vat_category] + calc.vat_amount
                    )

        subtotal = subtotal.round()
        vat_total = vat_total.round()
        totals = InvoiceTotals(
            subtotal=subtotal,
            vat=vat_total,
            total=(subtotal + vat_total).round(),
            vat_breakdown={c: amount.round() for c, amount in breakdown.items()},
            vat_registered=vat_registered,
            rate_version=self.rates.version,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("invoice_totals_completed", extra={
            "subtotal": totals.subtotal.to_str(),
            "vat": totals.vat.to_str(),
            "total": totals.total.to_str(),
            "line_count": len(items),
            "duration_ms": duration_ms,
        })
        return totals


# Convenience functions over the statutory default rates

_DEFAULT_CALCULATOR = VATCalculator()


def calculate_line(
    quantity: Decimal | int | str | float,
    unit_price: Decimal | int | str | float,
    category: VATCategory | str,
) -> LineCalculationResult:
    """Calculate one line at the default statutory rates."""
    return _DEFAULT_CALCULATOR.calculate_line(quantity, unit_price, category)


def aggregate_invoice(
    line_items: Iterable[LineItem | Mapping[str, Any]],
    vat_registered: bool = True,
) -> InvoiceTotals:
    """Invoice totals at the default statutory rates."""
    return _DEFAULT_CALCULATOR.aggregate_invoice(line_items, vat_registered)
