"""
Expense Domain Models.

The nouns of expense recording: a prepared expense, expense list totals and
the per-category breakdown of a list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from ukbooks_engines.mileage import MileageClaim
from ukbooks_kernel.domain.values import Money


@dataclass(frozen=True)
class PreparedExpense:
    """
    A validated expense ready for persistence.

    For a mileage claim, ``amount`` is the claim value, not the submitted
    figure, and ``mileage_claim`` records the rate it was priced at.
    """

    company_id: str
    expense_date: date
    amount: Money
    category: str
    description: str | None = None
    vat_amount: Money = Money.zero()
    mileage: Decimal | None = None
    vehicle_category: str | None = None
    mileage_claim: MileageClaim | None = None

    @property
    def net_amount(self) -> Money:
        """Amount excluding reclaimable VAT."""
        return self.amount - self.vat_amount

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "companyId": self.company_id,
            "date": self.expense_date.isoformat(),
            "amount": self.amount.to_str(),
            "vatAmount": self.vat_amount.to_str(),
            "category": self.category,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.mileage is not None:
            data["mileage"] = format(self.mileage, "f")
        if self.vehicle_category is not None:
            data["vehicleCategory"] = self.vehicle_category
        if self.mileage_claim is not None:
            data["rateVersion"] = self.mileage_claim.rate_version
        return data


@dataclass(frozen=True)
class ExpenseTotals:
    """Totals over an expense list; ``mileage`` is miles, not money."""

    total: Money
    mileage: Decimal
    count: int
    vat: Money = Money.zero()

    @property
    def net(self) -> Money:
        return self.total - self.vat

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total.to_str(),
            "mileage": format(self.mileage, "f"),
            "vat": self.vat.to_str(),
            "count": self.count,
        }


@dataclass(frozen=True)
class CategoryTotals:
    """Spend in one expense category; ``percentage`` is its share of the list total."""

    name: str
    amount: Money
    vat: Money
    percentage: Decimal

    @property
    def net(self) -> Money:
        return self.amount - self.vat

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount.to_str(),
            "vat": self.vat.to_str(),
            "net": self.net.to_str(),
            "percentage": format(self.percentage, "f"),
        }


@dataclass(frozen=True)
class ExpenseBreakdown:
    """
    An expense list split by category, largest spend first.

    ``totals`` is computed over the same records as the categories.
    """

    categories: tuple[CategoryTotals, ...]
    totals: ExpenseTotals

    def amounts_by_category(self) -> dict[str, str]:
        return {c.name: c.amount.to_str() for c in self.categories}

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": [c.to_dict() for c in self.categories],
            "total": {
                "amount": self.totals.total.to_str(),
                "vat": self.totals.vat.to_str(),
                "net": self.totals.net.to_str(),
            },
        }
