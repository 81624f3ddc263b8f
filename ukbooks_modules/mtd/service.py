"""
MTD Module Service (``ukbooks_modules.mtd.service``).

Responsibility
--------------
Builds the quarterly VAT return and summary for a business from its stored
invoices and expenses: filters both into the VAT quarter, aggregates sales
VAT with ``ReportAggregator`` and purchase VAT from the expenses, then
derives the nine return boxes, the quarter's profit and loss and the
expense breakdown by category.

Architecture position
---------------------
**Modules layer** -- orchestration only. Aggregation lives in
``ukbooks_engines.reporting``; period arithmetic in
``ukbooks_modules.mtd.periods``. The return is computed, never submitted.

Usage::

    service = MTDService()
    quarterly = service.quarterly_vat_return(1, 2024, invoices, expenses)
    print(quarterly.vat_return.box5, quarterly.profit_loss.profit_margin)
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ukbooks_engines.reporting import (
    RateBucket,
    ReportAggregator,
    VATBreakdownReport,
    VATReturn,
    build_vat_return,
)
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.logging_config import LogContext, get_logger
from ukbooks_modules._request_helpers import parse_request_date, record_field
from ukbooks_modules.expense.models import ExpenseBreakdown, ExpenseTotals
from ukbooks_modules.expense.service import ExpenseService
from ukbooks_modules.mtd.periods import (
    MTDRequirements,
    business_requirements,
    normalize_quarter,
    quarter_dates,
    vat_return_due_date,
)

logger = get_logger("modules.mtd.service")


@dataclass(frozen=True)
class ProfitLoss:
    """
    Quarter profit from net sales and net expenses.

    There are no cost-of-sales categories, so gross and net profit are the
    same figure. ``profit_margin`` is a percentage of net sales to one
    decimal place, 0 for a quarter without sales.
    """

    gross_profit: Money
    net_profit: Money
    profit_margin: Decimal

    @classmethod
    def from_figures(cls, revenue_net: Money, expenses_net: Money) -> ProfitLoss:
        profit = revenue_net - expenses_net
        if revenue_net.is_zero:
            margin = Decimal("0.0")
        else:
            margin = (profit.amount / revenue_net.amount * 100).quantize(
                Decimal("0.1"), rounding=ROUND_HALF_UP
            )
        return cls(gross_profit=profit, net_profit=profit, profit_margin=margin)

    def to_dict(self) -> dict[str, Any]:
        return {
            "grossProfit": self.gross_profit.to_str(),
            "netProfit": self.net_profit.to_str(),
            "profitMargin": format(self.profit_margin, "f"),
        }


@dataclass(frozen=True)
class QuarterlyVATReturn:
    """A VAT quarter's figures and the return derived from them."""

    quarter: int
    year: int
    period_start: date
    period_end: date
    due_date: date
    sales: VATBreakdownReport
    expenses: ExpenseTotals
    vat_return: VATReturn
    requirements: MTDRequirements
    profit_loss: ProfitLoss
    expense_breakdown: ExpenseBreakdown
    vat_registered: bool = True

    @property
    def period(self) -> str:
        return f"{self.period_start.isoformat()} to {self.period_end.isoformat()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "quarter": self.quarter,
            "year": self.year,
            "period": self.period,
            "dueDate": self.due_date.isoformat(),
            "vatRegistered": self.vat_registered,
            "revenue": {
                "net": self.sales.total_net.to_str(),
                "vat": self.sales.total_vat.to_str(),
                "total": self.sales.total_gross.to_str(),
                "invoices": self.sales.invoice_count,
            },
            "expenses": {
                "net": self.expenses.net.to_str(),
                "vat": self.expenses.vat.to_str(),
                "total": self.expenses.total.to_str(),
                "count": self.expenses.count,
                "categories": self.expense_breakdown.amounts_by_category(),
            },
            "profitLoss": self.profit_loss.to_dict(),
            "vatReturn": self.vat_return.to_dict(),
            "requirements": self.requirements.to_dict(),
        }


def _in_period(raw_date: Any, start: date, end: date) -> bool:
    if raw_date is None:
        return False
    return start <= parse_request_date(raw_date) <= end


def _expenses_in(expenses: Iterable[Any], start: date, end: date) -> list[Any]:
    return [
        exp for exp in expenses
        if _in_period(record_field(exp, "expense_date", "date"), start, end)
    ]


class MTDService:
    """
    Quarterly MTD figures from stored invoices and expenses.

    Args:
        aggregator: Sales VAT aggregator (statutory default rates when
            omitted).
        expense_service: Totals the quarter's expenses.
    """

    def __init__(
        self,
        aggregator: ReportAggregator | None = None,
        expense_service: ExpenseService | None = None,
    ):
        self.aggregator = aggregator or ReportAggregator()
        self.expense_service = expense_service or ExpenseService()

    def quarterly_vat_return(
        self,
        quarter: Any,
        year: int | str,
        invoices: Iterable[Any],
        expenses: Iterable[Any],
        vat_registered: bool = True,
        business_type: str | None = None,
        company_id: Any = None,
        request_id: str | None = None,
    ) -> QuarterlyVATReturn:
        """
        Build the VAT return for one calendar quarter.

        Invoices are placed by ``invoiceDate`` / ``invoice_date`` and
        expenses by ``date`` / ``expense_date``; records outside the quarter
        are ignored. A business that is not VAT registered reports its sales
        and purchases with every VAT figure at zero, so its expense net
        equals its expense total.

        Args:
            quarter: 1-4 (anything else is treated as Q1)
            year: Calendar year of the quarter
            invoices: Invoice dicts or objects carrying line items
            expenses: Expense dicts or PreparedExpense objects
            vat_registered: Whether the business charges and reclaims VAT
            business_type: Selects the MTD requirements summary
            company_id: Business the records belong to, for the log lines
            request_id: Id of the HTTP request, for the log lines

        Returns:
            QuarterlyVATReturn
        """
        t0 = time.monotonic()
        quarter = normalize_quarter(quarter)
        year = int(year)
        start, end = quarter_dates(quarter, year)

        with LogContext.bind(company_id=company_id, request_id=request_id):
            logger.info("quarterly_vat_return_started", extra={
                "quarter": quarter,
                "year": year,
                "vat_registered": vat_registered,
            })

            period_invoices = [
                inv for inv in invoices
                if _in_period(record_field(inv, "invoiceDate", "invoice_date"), start, end)
            ]
            period_expenses = _expenses_in(expenses, start, end)

            sales = self.aggregator.vat_breakdown_report(period_invoices)
            breakdown = self.expense_service.expense_breakdown(period_expenses)
            expense_totals = breakdown.totals

            if not vat_registered:
                sales = replace(
                    sales,
                    total_vat=Money.zero(),
                    total_gross=sales.total_net,
                    by_rate={c: RateBucket(b.net, Money.zero()) for c, b in sales.by_rate.items()},
                )
                expense_totals = replace(expense_totals, vat=Money.zero())
                breakdown = replace(
                    breakdown,
                    totals=expense_totals,
                    categories=tuple(
                        replace(c, vat=Money.zero()) for c in breakdown.categories
                    ),
                )

            vat_return = build_vat_return(sales, expense_totals.vat, expense_totals.net)
            profit_loss = ProfitLoss.from_figures(sales.total_net, expense_totals.net)

            result = QuarterlyVATReturn(
                quarter=quarter,
                year=year,
                period_start=start,
                period_end=end,
                due_date=vat_return_due_date(quarter, year),
                sales=sales,
                expenses=expense_totals,
                vat_return=vat_return,
                requirements=business_requirements(business_type),
                profit_loss=profit_loss,
                expense_breakdown=breakdown,
                vat_registered=vat_registered,
            )

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("quarterly_vat_return_completed", extra={
                "quarter": quarter,
                "year": year,
                "invoice_count": len(period_invoices),
                "expense_count": len(period_expenses),
                "box5": vat_return.box5.to_str(),
                "is_repayment": vat_return.is_repayment,
                "net_profit": profit_loss.net_profit.to_str(),
                "duration_ms": duration_ms,
            })
        return result

    def expense_breakdown(
        self,
        quarter: Any,
        year: int | str,
        expenses: Iterable[Any],
    ) -> ExpenseBreakdown:
        """Expense breakdown by category for one calendar quarter."""
        start, end = quarter_dates(quarter, year)
        return self.expense_service.expense_breakdown(_expenses_in(expenses, start, end))
