"""
Expense Module Service (``ukbooks_modules.expense.service``).

Responsibility
--------------
Prepares expense create/update payloads for persistence and totals expense
lists for the expense screens and the MTD quarter views, overall and per
category.

Architecture position
---------------------
**Modules layer** -- thin glue over ``ukbooks_engines.mileage``.

Business rules
--------------
* When both ``mileage`` and ``vehicleCategory`` are present the stored
  amount is the mileage claim (miles x HMRC rate), whatever amount the
  client submitted. A mileage claim carries no reclaimable VAT.
* List totals sum the stored amounts and the recorded miles, rounded to
  two decimal places.
* A category breakdown gives each category its share of the list total as
  a percentage to one decimal place; records without a category are
  grouped under "Uncategorised".

Usage::

    service = ExpenseService()
    expense = service.prepare_expense(request_body)
    totals = service.summarize_expenses(stored_expenses)
    breakdown = service.expense_breakdown(stored_expenses)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ukbooks_config import RateScheduleSet, get_rate_schedule, load_rate_schedule_set
from ukbooks_engines.mileage import MileageCalculator
from ukbooks_engines.rates import MileageRateTable, number_or_zero
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.logging_config import LogContext, get_logger
from ukbooks_modules._request_helpers import parse_request_date, record_field
from ukbooks_modules.expense.models import (
    CategoryTotals,
    ExpenseBreakdown,
    ExpenseTotals,
    PreparedExpense,
)
from ukbooks_modules.validation import CREATE_EXPENSE, require_valid

logger = get_logger("modules.expense.service")

UNCATEGORISED = "Uncategorised"


def _amount_of(value: Any, field_name: str) -> Decimal:
    if isinstance(value, Money):
        return value.amount
    if value is None:
        return Decimal("0")
    return number_or_zero(value, field_name)


class ExpenseService:
    """
    Prepare and total expenses.

    Args:
        mileage_rates: Fixed mileage rate table (HMRC defaults when omitted).
        rate_lookup: Picks the mileage table for an expense date; takes
            precedence over ``mileage_rates``.
    """

    def __init__(
        self,
        mileage_rates: MileageRateTable | None = None,
        rate_lookup: Callable[[date], MileageRateTable] | None = None,
    ):
        self._calculator = MileageCalculator(mileage_rates)
        self._rate_lookup = rate_lookup

    @classmethod
    def with_rate_schedules(
        cls,
        strict: bool = False,
        schedule_set: RateScheduleSet | None = None,
    ) -> ExpenseService:
        """Service that prices mileage at the rates in force on the expense date."""
        schedules = schedule_set if schedule_set is not None else load_rate_schedule_set()
        return cls(
            rate_lookup=lambda on_date: get_rate_schedule(
                on_date, strict=strict, schedule_set=schedules
            ).mileage_rates
        )

    def _calculator_for(self, expense_date: date) -> MileageCalculator:
        if self._rate_lookup is None:
            return self._calculator
        return MileageCalculator(self._rate_lookup(expense_date))

    def prepare_expense(
        self,
        payload: Mapping[str, Any],
        request_id: str | None = None,
    ) -> PreparedExpense:
        """
        Validate an expense payload and apply the mileage rule.

        Raises:
            RequestValidationError: If the payload fails validation,
                including a ``vatAmount`` above ``amount``
        """
        data = require_valid(payload, CREATE_EXPENSE)
        expense_date = parse_request_date(data["date"])
        amount = Money.of(data["amount"]).round()
        vat_amount = Money.of(data.get("vatAmount", 0)).round()

        mileage = data.get("mileage")
        vehicle_category = data.get("vehicleCategory")
        claim = None

        with LogContext.bind(company_id=data["companyId"], request_id=request_id):
            if mileage is not None and vehicle_category is not None:
                claim = self._calculator_for(expense_date).calculate_claim(
                    mileage, vehicle_category
                )
                logger.info("expense_amount_overridden", extra={
                    "submitted_amount": amount.to_str(),
                    "claim_amount": claim.claim_amount.to_str(),
                    "vehicle_category": vehicle_category,
                })
                amount = claim.claim_amount
                vat_amount = Money.zero()

            expense = PreparedExpense(
                company_id=str(data["companyId"]),
                expense_date=expense_date,
                amount=amount,
                category=data["category"],
                description=data.get("description"),
                vat_amount=vat_amount,
                mileage=number_or_zero(mileage, "mileage") if mileage is not None else None,
                vehicle_category=vehicle_category,
                mileage_claim=claim,
            )

            logger.info("expense_prepared", extra={
                "category": expense.category,
                "amount": expense.amount.to_str(),
                "is_mileage_claim": claim is not None,
            })
        return expense

    def summarize_expenses(self, expenses: Iterable[Any]) -> ExpenseTotals:
        """
        Total an expense list.

        Args:
            expenses: PreparedExpense objects or stored expense dicts with
                ``amount`` and optional ``mileage`` / ``vatAmount``

        Returns:
            ExpenseTotals rounded to two decimal places
        """
        total = Decimal("0")
        vat = Decimal("0")
        miles = Decimal("0")
        count = 0

        for expense in expenses:
            count += 1
            total += _amount_of(record_field(expense, "amount"), "amount")
            vat += _amount_of(record_field(expense, "vat_amount", "vatAmount"), "vat_amount")
            mileage = record_field(expense, "mileage")
            if mileage:
                miles += _amount_of(mileage, "mileage")

        totals = ExpenseTotals(
            total=Money.of(total).round(),
            mileage=miles.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            count=count,
            vat=Money.of(vat).round(),
        )

        logger.info("expenses_summarized", extra={
            "count": count,
            "total": totals.total.to_str(),
            "mileage": format(totals.mileage, "f"),
        })
        return totals

    def expense_breakdown(self, expenses: Iterable[Any]) -> ExpenseBreakdown:
        """
        Split an expense list by category.

        Each category carries its amount, VAT and net figures and its share
        of the list total, rounded half-up to one decimal place (0 when the
        list total is zero). Categories are ordered by amount, largest
        first, then by name.
        """
        records = list(expenses)
        totals = self.summarize_expenses(records)

        amounts: dict[str, Decimal] = {}
        vats: dict[str, Decimal] = {}
        for expense in records:
            name = record_field(expense, "category") or UNCATEGORISED
            amounts[name] = amounts.get(name, Decimal("0")) + _amount_of(
                record_field(expense, "amount"), "amount"
            )
            vats[name] = vats.get(name, Decimal("0")) + _amount_of(
                record_field(expense, "vat_amount", "vatAmount"), "vat_amount"
            )

        categories = []
        for name, amount in amounts.items():
            rounded = Money.of(amount).round()
            categories.append(CategoryTotals(
                name=name,
                amount=rounded,
                vat=Money.of(vats[name]).round(),
                percentage=_share(rounded, totals.total),
            ))
        categories.sort(key=lambda c: (-c.amount.amount, c.name))

        logger.info("expense_breakdown_computed", extra={
            "count": totals.count,
            "category_count": len(categories),
            "total": totals.total.to_str(),
        })
        return ExpenseBreakdown(categories=tuple(categories), totals=totals)


def _share(part: Money, whole: Money) -> Decimal:
    if whole.is_zero:
        return Decimal("0.0")
    return (part.amount / whole.amount * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


_DEFAULT_SERVICE = ExpenseService()


def summarize_expenses(expenses: Iterable[Any]) -> ExpenseTotals:
    """Total an expense list."""
    return _DEFAULT_SERVICE.summarize_expenses(expenses)


def expense_breakdown(expenses: Iterable[Any]) -> ExpenseBreakdown:
    """Split an expense list by category."""
    return _DEFAULT_SERVICE.expense_breakdown(expenses)
