"""
Expense Module (``ukbooks_modules.expense``).

Expense payload preparation (with the mileage claim rule), expense list
totals and the per-category breakdown.
"""

from ukbooks_modules.expense.models import (
    CategoryTotals,
    ExpenseBreakdown,
    ExpenseTotals,
    PreparedExpense,
)
from ukbooks_modules.expense.service import (
    UNCATEGORISED,
    ExpenseService,
    expense_breakdown,
    summarize_expenses,
)

__all__ = [
    "CategoryTotals",
    "ExpenseBreakdown",
    "ExpenseService",
    "ExpenseTotals",
    "PreparedExpense",
    "UNCATEGORISED",
    "expense_breakdown",
    "summarize_expenses",
]
