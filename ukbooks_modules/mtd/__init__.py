"""
MTD Module (``ukbooks_modules.mtd``).

Making Tax Digital period helpers and the quarterly VAT return built from
stored invoices and expenses.
"""

from ukbooks_modules.mtd.periods import (
    BUSINESS_TYPES,
    MTDRequirements,
    business_requirements,
    current_tax_year,
    days_overdue,
    days_until_due,
    invoice_due_date,
    is_overdue,
    quarter_dates,
    quarter_of,
    tax_year_end,
    tax_year_start,
    vat_return_due_date,
)
from ukbooks_modules.mtd.service import MTDService, ProfitLoss, QuarterlyVATReturn

__all__ = [
    "BUSINESS_TYPES",
    "MTDRequirements",
    "MTDService",
    "ProfitLoss",
    "QuarterlyVATReturn",
    "business_requirements",
    "current_tax_year",
    "days_overdue",
    "days_until_due",
    "invoice_due_date",
    "is_overdue",
    "quarter_dates",
    "quarter_of",
    "tax_year_end",
    "tax_year_start",
    "vat_return_due_date",
]
