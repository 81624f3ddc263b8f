"""
MTD period helpers.

Calendar arithmetic for Making Tax Digital reporting: VAT quarters, VAT
return due dates, the UK tax year (6 April to 5 April) and invoice due
dates. Quarters are calendar quarters (Q1 = January to March).

All functions take the reference date explicitly where "today" matters so
they stay pure; callers pass ``date.today()`` at the edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

_QUARTER_MONTHS = {
    1: ((1, 1), (3, 31)),
    2: ((4, 1), (6, 30)),
    3: ((7, 1), (9, 30)),
    4: ((10, 1), (12, 31)),
}

# (month, day, years after the quarter's year)
_RETURN_DUE = {
    1: (5, 7, 0),
    2: (8, 7, 0),
    3: (11, 7, 0),
    4: (2, 7, 1),
}

TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6
DEFAULT_PAYMENT_TERMS_DAYS = 30


def normalize_quarter(quarter: Any) -> int:
    """Quarter number 1-4; anything else falls back to Q1."""
    try:
        number = int(quarter)
    except (TypeError, ValueError):
        return 1
    return number if number in _QUARTER_MONTHS else 1


def quarter_dates(quarter: Any, year: int | str) -> tuple[date, date]:
    """First and last day of a VAT quarter. Unknown quarters give Q1."""
    (start_month, start_day), (end_month, end_day) = _QUARTER_MONTHS[normalize_quarter(quarter)]
    year = int(year)
    return date(year, start_month, start_day), date(year, end_month, end_day)


def quarter_of(on_date: date) -> int:
    return (on_date.month - 1) // 3 + 1


def vat_return_due_date(quarter: Any, year: int | str) -> date:
    """Filing deadline: the 7th of the second month after the quarter ends."""
    month, day, year_offset = _RETURN_DUE[normalize_quarter(quarter)]
    return date(int(year) + year_offset, month, day)


def current_tax_year(today: date | None = None) -> str:
    """Tax year label such as ``"2024/2025"``; a new year starts on 6 April."""
    today = today or date.today()
    start = date(today.year, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)
    if today >= start:
        return f"{today.year}/{today.year + 1}"
    return f"{today.year - 1}/{today.year}"


def _tax_year_bounds(tax_year: str) -> tuple[int, int]:
    try:
        start, end = (int(part) for part in tax_year.split("/"))
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Tax year must look like '2024/2025', got {tax_year!r}") from e
    if end != start + 1:
        raise ValueError(f"Tax year must span consecutive years, got {tax_year!r}")
    return start, end


def tax_year_start(tax_year: str) -> date:
    """6 April of the tax year's first calendar year."""
    start, _ = _tax_year_bounds(tax_year)
    return date(start, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)


def tax_year_end(tax_year: str) -> date:
    """5 April of the tax year's second calendar year."""
    _, end = _tax_year_bounds(tax_year)
    return date(end, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY - 1)


def invoice_due_date(invoice_date: date, payment_terms: int = DEFAULT_PAYMENT_TERMS_DAYS) -> date:
    return invoice_date + timedelta(days=payment_terms)


def days_overdue(due_date: date, today: date | None = None) -> int:
    """Days past the due date; zero or negative when not yet overdue."""
    today = today or date.today()
    return (today - due_date).days


def days_until_due(due_date: date, today: date | None = None) -> int:
    """Days left until the due date; zero on the day, negative once overdue."""
    today = today or date.today()
    return (due_date - today).days


def is_overdue(due_date: date, today: date | None = None) -> bool:
    return days_overdue(due_date, today) > 0


@dataclass(frozen=True)
class MTDRequirements:
    """What a business type has to file under Making Tax Digital."""

    business_type: str
    title: str
    description: str
    reports: tuple[str, ...]
    frequency: str
    notes: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "reports": list(self.reports),
            "frequency": self.frequency,
            "notes": self.notes,
        }


_REQUIREMENTS = {
    "sole-trader": MTDRequirements(
        business_type="sole-trader",
        title="Sole Trader Requirements",
        description="MTD for Income Tax (from April 2026)",
        reports=(
            "Quarterly income and expense summaries",
            "Annual Self Assessment return",
            "VAT returns (if VAT registered)",
        ),
        frequency="Quarterly + Annual",
        notes="Currently preparing for MTD for Income Tax",
    ),
    "partnership": MTDRequirements(
        business_type="partnership",
        title="Partnership Requirements",
        description="MTD for Income Tax (from April 2026)",
        reports=(
            "Quarterly income and expense summaries",
            "Partnership tax return (SA800)",
            "Individual partner returns",
            "VAT returns (if VAT registered)",
        ),
        frequency="Quarterly + Annual",
        notes="Currently preparing for MTD for Income Tax",
    ),
    "limited-company": MTDRequirements(
        business_type="limited-company",
        title="Limited Company Requirements",
        description="Corporation Tax (not yet MTD)",
        reports=(
            "Annual accounts and CT600 return",
            "VAT returns (if VAT registered)",
            "PAYE returns (if employing staff)",
        ),
        frequency="Annual + Quarterly VAT",
        notes="Corporation Tax MTD not yet implemented",
    ),
    "vat-registered": MTDRequirements(
        business_type="vat-registered",
        title="VAT Registered Business",
        description="MTD for VAT (mandatory since April 2019)",
        reports=(
            "Quarterly VAT returns (VAT100)",
            "Digital record keeping",
            "VAT reconciliation reports",
        ),
        frequency="Quarterly",
        notes="MTD for VAT is mandatory for all VAT registered businesses",
    ),
}

BUSINESS_TYPES = tuple(_REQUIREMENTS)


def business_requirements(business_type: str | None) -> MTDRequirements:
    """Filing requirements for a business type; unknown types get sole trader."""
    return _REQUIREMENTS.get(business_type or "", _REQUIREMENTS["sole-trader"])
