"""
Invoice Module Service (``ukbooks_modules.invoice.service``).

Responsibility
--------------
Prices an invoice create/update payload: validates it, computes the
``LineCalculationResult`` stored with every line and the ``InvoiceTotals``
stored on the invoice. There is no incremental mode; an update re-prices
the full, final line set.

Architecture position
---------------------
**Modules layer** -- thin glue. Pure computation is delegated to
``ukbooks_engines.vat``; rates come from the statutory defaults, an
explicit table, or the versioned schedule effective on the invoice date.

Failure modes
-------------
* Invalid payload  -> ``RequestValidationError`` (HTTP 400) before any
  calculation happens.
* Strict rate table and unknown category  -> ``UnknownVATCategoryError``.
* No rate schedule for the invoice date  -> ``RateScheduleNotFoundError``.

Usage::

    service = InvoiceService.with_rate_schedules()
    priced = service.price_invoice(request_body, vat_registered=True)
    store(priced.to_dict())
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from ukbooks_config import RateScheduleSet, get_rate_schedule, load_rate_schedule_set
from ukbooks_engines.rates import RateTable
from ukbooks_engines.vat import LineItem, VATCalculator
from ukbooks_kernel.logging_config import LogContext, get_logger
from ukbooks_modules._request_helpers import parse_request_date
from ukbooks_modules.invoice.models import PricedInvoice, PricedLine
from ukbooks_modules.validation import CREATE_INVOICE, require_valid

logger = get_logger("modules.invoice.service")


class InvoiceService:
    """
    Price invoice payloads.

    Args:
        rates: Fixed rate table for every invoice (statutory defaults
            when omitted and no lookup is given).
        rate_lookup: Picks the rate table for an invoice date; takes
            precedence over ``rates``.
    """

    def __init__(
        self,
        rates: RateTable | None = None,
        rate_lookup: Callable[[date], RateTable] | None = None,
    ):
        self._calculator = VATCalculator(rates)
        self._rate_lookup = rate_lookup

    @classmethod
    def with_rate_schedules(
        cls,
        strict: bool = False,
        schedule_set: RateScheduleSet | None = None,
    ) -> InvoiceService:
        """
        Service that prices each invoice at the rates in force on its date.

        The schedules are read and validated here, once; pricing only
        selects among them.
        """
        schedules = schedule_set if schedule_set is not None else load_rate_schedule_set()
        return cls(
            rate_lookup=lambda on_date: get_rate_schedule(
                on_date, strict=strict, schedule_set=schedules
            ).vat_rates
        )

    def _calculator_for(self, invoice_date: date) -> VATCalculator:
        if self._rate_lookup is None:
            return self._calculator
        return VATCalculator(self._rate_lookup(invoice_date))

    def price_invoice(
        self,
        payload: Mapping[str, Any],
        vat_registered: bool = True,
        invoice_id: Any = None,
        request_id: str | None = None,
    ) -> PricedInvoice:
        """
        Validate and price an invoice payload.

        Args:
            payload: createInvoice request body
            vat_registered: Whether the issuing company charges VAT
            invoice_id: Id of the stored invoice when re-pricing an update
            request_id: Id of the HTTP request, stamped on the log lines

        Returns:
            PricedInvoice with per-line amounts and invoice totals

        Raises:
            RequestValidationError: If the payload fails validation
        """
        data = require_valid(payload, CREATE_INVOICE)
        invoice_date = parse_request_date(data["invoiceDate"])

        with LogContext.bind(
            company_id=data["companyId"],
            invoice_id=invoice_id,
            request_id=request_id,
        ):
            logger.info("invoice_pricing_started", extra={
                "line_count": len(data["lineItems"]),
                "invoice_date": invoice_date.isoformat(),
                "vat_registered": vat_registered,
            })

            calculator = self._calculator_for(invoice_date)
            items = [LineItem.from_mapping(raw) for raw in data["lineItems"]]
            calculations = calculator.price_lines(items)
            totals = calculator.aggregate_invoice(items, vat_registered=vat_registered)

            lines = tuple(
                PricedLine(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    vat_category=item.vat_category,
                    calculation=calc,
                )
                for item, calc in zip(items, calculations)
            )

            priced = PricedInvoice(
                company_id=str(data["companyId"]),
                client_id=str(data["clientId"]),
                invoice_date=invoice_date,
                due_date=parse_request_date(data["dueDate"]),
                description=data.get("description"),
                lines=lines,
                totals=totals,
            )

            logger.info("invoice_pricing_completed", extra={
                "subtotal": totals.subtotal.to_str(),
                "vat": totals.vat.to_str(),
                "total": totals.total.to_str(),
                "rate_version": totals.rate_version,
            })
        return priced
