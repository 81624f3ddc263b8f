"""
VAT Reporting Engine - Period VAT breakdowns and VAT return boxes.

Aggregates line-level VAT across a set of invoices for period views (VAT
quarter, MTD quarterly summary) and derives the nine-box VAT return from
the sales breakdown and purchase VAT.

Rounding policy:
    Per-line values come from VATCalculator and are already rounded.
    Accumulators hold raw sums of those rounded values; every terminal
    value is rounded to pence once more when the report is assembled.

Usage:
    from ukbooks_engines.reporting import vat_breakdown_report

    report = vat_breakdown_report([
        {"lineItems": [{"quantity": 1, "unitPrice": "100", "vatCategory": "STANDARD"}]},
    ])
    print(report.total_gross)  # Money: 120.00 GBP
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any

from ukbooks_engines.rates import VATCategory
from ukbooks_engines.vat import LineItem, VATCalculator
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.logging_config import get_logger

logger = get_logger("engines.reporting")


@dataclass(frozen=True)
class RateBucket:
    """Net and VAT accumulated for one VAT category."""

    net: Money
    vat: Money

    @classmethod
    def empty(cls) -> RateBucket:
        return cls(net=Money.zero(), vat=Money.zero())

    def add(self, net: Money, vat: Money) -> RateBucket:
        return RateBucket(net=self.net + net, vat=self.vat + vat)

    def rounded(self) -> RateBucket:
        return RateBucket(net=self.net.round(), vat=self.vat.round())

    def to_dict(self) -> dict[str, str]:
        return {"net": self.net.to_str(), "vat": self.vat.to_str()}


@dataclass(frozen=True)
class VATBreakdownReport:
    """
    VAT breakdown across many invoices.

    by_rate always carries all four VAT categories. Lines with an unknown
    category count toward the totals but sit in no bucket.
    """

    total_net: Money
    total_vat: Money
    total_gross: Money
    by_rate: Mapping[VATCategory, RateBucket]
    invoice_count: int = 0
    line_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalNet": self.total_net.to_str(),
            "totalVAT": self.total_vat.to_str(),
            "totalGross": self.total_gross.to_str(),
            "byRate": {
                category.value: bucket.to_dict()
                for category, bucket in self.by_rate.items()
            },
        }


def _line_items_of(invoice: Any) -> Iterable[Any]:
    """Line items from an invoice object or request-shaped dict."""
    if isinstance(invoice, Mapping):
        items = invoice.get("lineItems")
        if items is None:
            items = invoice.get("line_items")
        return items or ()
    return getattr(invoice, "line_items", None) or ()


class ReportAggregator:
    """
    Aggregate VAT across invoices for period reporting.

    Pure: inputs are read, never mutated.
    """

    def __init__(self, calculator: VATCalculator | None = None):
        self.calculator = calculator or VATCalculator()

    def vat_breakdown_report(self, invoices: Iterable[Any]) -> VATBreakdownReport:
        """
        Build a VAT breakdown across every line of every invoice.

        Args:
            invoices: Objects with ``line_items`` or dicts with
                ``lineItems`` / ``line_items``

        Returns:
            VATBreakdownReport with terminal values rounded to pence
        """
        t0 = time.monotonic()

        total_net = Money.zero()
        total_vat = Money.zero()
        by_rate = {category: RateBucket.empty() for category in VATCategory}
        invoice_count = 0
        line_count = 0

        for invoice in invoices:
            invoice_count += 1
            for raw_item in _line_items_of(invoice):
                item = LineItem.coerce(raw_item)
                calc = self.calculator.calculate_line(
                    item.quantity, item.unit_price, item.vat_category
                )
                line_count += 1

                total_net = total_net + calc.line_total
                total_vat = total_vat + calc.vat_amount
                if isinstance(calc.vat_category, VATCategory):
                    by_rate[calc.vat_category] = by_rate[calc.vat_category].add(
                        calc.line_total, calc.vat_amount
                    )

        total_gross = total_net + total_vat

        report = VATBreakdownReport(
            total_net=total_net.round(),
            total_vat=total_vat.round(),
            total_gross=total_gross.round(),
            by_rate={c: bucket.rounded() for c, bucket in by_rate.items()},
            invoice_count=invoice_count,
            line_count=line_count,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("vat_breakdown_completed", extra={
            "invoice_count": invoice_count,
            "line_count": line_count,
            "total_net": report.total_net.to_str(),
            "total_vat": report.total_vat.to_str(),
            "total_gross": report.total_gross.to_str(),
            "duration_ms": duration_ms,
        })
        return report


# ---------------------------------------------------------------------------
# VAT return (nine boxes)
# ---------------------------------------------------------------------------


def _whole_pounds(amount: Money) -> Money:
    """Boxes 6-9 are reported in whole pounds, pence dropped."""
    return Money.of(amount.amount.quantize(Decimal("1"), rounding=ROUND_DOWN))


@dataclass(frozen=True)
class VATReturn:
    """
    The nine boxes of a UK VAT return.

    box5 is always non-negative; ``is_repayment`` tells whether HMRC owes
    the business.
    """

    box1: Money  # VAT due on sales
    box2: Money  # VAT due on acquisitions from EU member states
    box3: Money  # Total VAT due (box1 + box2)
    box4: Money  # VAT reclaimed on purchases
    box5: Money  # Net VAT to pay or reclaim
    box6: Money  # Total sales excluding VAT
    box7: Money  # Total purchases excluding VAT
    box8: Money  # Supplies to EU member states excluding VAT
    box9: Money  # Acquisitions from EU member states excluding VAT

    @property
    def net_vat(self) -> Money:
        """Signed net VAT (negative when a repayment is due)."""
        return self.box3 - self.box4

    @property
    def is_repayment(self) -> bool:
        return self.net_vat.is_negative

    def to_dict(self) -> dict[str, str]:
        return {
            f"box{i}": getattr(self, f"box{i}").to_str() for i in range(1, 10)
        }


def build_vat_return(
    sales: VATBreakdownReport,
    purchase_vat: Money,
    purchase_net: Money,
    acquisitions_vat: Money | None = None,
    eu_supplies_net: Money | None = None,
    eu_acquisitions_net: Money | None = None,
) -> VATReturn:
    """
    Derive VAT return boxes from a sales breakdown and purchase figures.

    Args:
        sales: Breakdown of the period's sales invoices
        purchase_vat: Input VAT reclaimable on purchases
        purchase_net: Purchases excluding VAT
        acquisitions_vat: VAT due on EU acquisitions (usually zero)
        eu_supplies_net: Supplies to EU member states (usually zero)
        eu_acquisitions_net: Acquisitions from EU member states (usually zero)

    Returns:
        VATReturn
    """
    box1 = sales.total_vat.round()
    box2 = (acquisitions_vat or Money.zero()).round()
    box3 = box1 + box2
    box4 = purchase_vat.round()

    vat_return = VATReturn(
        box1=box1,
        box2=box2,
        box3=box3,
        box4=box4,
        box5=abs(box3 - box4),
        box6=_whole_pounds(sales.total_net),
        box7=_whole_pounds(purchase_net),
        box8=_whole_pounds(eu_supplies_net or Money.zero()),
        box9=_whole_pounds(eu_acquisitions_net or Money.zero()),
    )

    logger.info("vat_return_built", extra={
        "box3": vat_return.box3.to_str(),
        "box4": vat_return.box4.to_str(),
        "box5": vat_return.box5.to_str(),
        "is_repayment": vat_return.is_repayment,
    })
    return vat_return


_DEFAULT_AGGREGATOR = ReportAggregator()


def vat_breakdown_report(invoices: Iterable[Any]) -> VATBreakdownReport:
    """VAT breakdown at the default statutory rates."""
    return _DEFAULT_AGGREGATOR.vat_breakdown_report(invoices)
