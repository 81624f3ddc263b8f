"""
Invoice Domain Models.

The nouns of invoice pricing: a priced line and a priced invoice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from ukbooks_engines.rates import VATCategory
from ukbooks_engines.vat import InvoiceTotals, LineCalculationResult


@dataclass(frozen=True)
class PricedLine:
    """A submitted line item with the amounts to persist alongside it."""

    description: str
    quantity: Decimal
    unit_price: Decimal
    vat_category: VATCategory | str
    calculation: LineCalculationResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": format(self.quantity, "f"),
            "unitPrice": format(self.unit_price, "f"),
            "vatCategory": str(getattr(self.vat_category, "value", self.vat_category)),
            "vatAmount": self.calculation.vat_amount.to_str(),
            "lineTotal": self.calculation.line_total.to_str(),
        }


@dataclass(frozen=True)
class PricedInvoice:
    """An invoice payload priced in full, ready for persistence."""

    company_id: str
    client_id: str
    invoice_date: date
    due_date: date
    description: str | None
    lines: tuple[PricedLine, ...]
    totals: InvoiceTotals

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "companyId": self.company_id,
            "clientId": self.client_id,
            "invoiceDate": self.invoice_date.isoformat(),
            "dueDate": self.due_date.isoformat(),
            "lineItems": [line.to_dict() for line in self.lines],
        }
        if self.description is not None:
            data["description"] = self.description
        data.update(self.totals.to_dict())
        return data
