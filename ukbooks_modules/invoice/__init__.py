"""
Invoice Module (``ukbooks_modules.invoice``).

Prices invoice create/update payloads: per-line VAT to persist with each
line plus the invoice totals and VAT breakdown.
"""

from ukbooks_modules.invoice.models import PricedInvoice, PricedLine
from ukbooks_modules.invoice.service import InvoiceService

__all__ = [
    "InvoiceService",
    "PricedInvoice",
    "PricedLine",
]
