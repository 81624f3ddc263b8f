"""
UK Books Engines - pure calculation functions.

No I/O, no database, no configuration reads. Rates are passed in as
immutable tables (statutory defaults when omitted).

Engines:
    rates       VAT and mileage rate tables
    vat         Per-line VAT and invoice totals
    mileage     Mileage allowance claims
    reporting   Multi-invoice VAT breakdowns and VAT return boxes
    formatting  Currency display text
"""

from ukbooks_engines.formatting import format_currency
from ukbooks_engines.mileage import (
    MileageCalculator,
    MileageClaim,
    calculate_mileage_expense,
)
from ukbooks_engines.rates import (
    DEFAULT_MILEAGE_RATES,
    DEFAULT_VAT_RATES,
    MileageRateTable,
    RateTable,
    VATCategory,
    VehicleCategory,
)
from ukbooks_engines.reporting import (
    RateBucket,
    ReportAggregator,
    VATBreakdownReport,
    VATReturn,
    build_vat_return,
    vat_breakdown_report,
)
from ukbooks_engines.vat import (
    InvoiceTotals,
    LineCalculationResult,
    LineItem,
    VATCalculator,
    aggregate_invoice,
    calculate_line,
)

__all__ = [
    "DEFAULT_MILEAGE_RATES",
    "DEFAULT_VAT_RATES",
    "InvoiceTotals",
    "LineCalculationResult",
    "LineItem",
    "MileageCalculator",
    "MileageClaim",
    "MileageRateTable",
    "RateBucket",
    "RateTable",
    "ReportAggregator",
    "VATBreakdownReport",
    "VATCalculator",
    "VATCategory",
    "VATReturn",
    "VehicleCategory",
    "aggregate_invoice",
    "build_vat_return",
    "calculate_line",
    "calculate_mileage_expense",
    "format_currency",
    "vat_breakdown_report",
]
