"""
Tests for the invoice pricing service.

Covers:
- Validation before pricing
- Per-line results and totals
- Rate selection by invoice date
- Output contract
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

import ukbooks_config
from ukbooks_engines.rates import RateTable, VATCategory
from ukbooks_kernel.domain.values import Money
from ukbooks_kernel.exceptions import RequestValidationError, UnknownVATCategoryError
from ukbooks_kernel.logging_config import LogContext
from ukbooks_modules.invoice import InvoiceService, PricedInvoice

INVOICE_ID = UUID("0c7d1f4e-2b9a-4e63-8a15-7f3e9d2c6b08")


class TestPriceInvoice:
    """Tests for pricing with the default statutory rates."""

    def setup_method(self):
        self.service = InvoiceService()

    def test_totals(self, invoice_payload):
        priced = self.service.price_invoice(invoice_payload(), vat_registered=True)

        assert isinstance(priced, PricedInvoice)
        assert priced.totals.subtotal == Money.of("190.00")
        assert priced.totals.vat == Money.of("22.00")
        assert priced.totals.total == Money.of("212.00")
        assert priced.totals.vat_breakdown[VATCategory.REDUCED] == Money.of("2.00")

    def test_per_line_results(self, invoice_payload):
        priced = self.service.price_invoice(invoice_payload())

        assert [line.description for line in priced.lines] == [
            "Consultancy", "Books", "Child car seat",
        ]
        first = priced.lines[0]
        assert first.quantity == Decimal("1")
        assert first.unit_price == Decimal("100.0")
        assert first.vat_category is VATCategory.STANDARD
        assert first.calculation.vat_amount == Money.of("20.00")
        assert first.calculation.total_with_vat == Money.of("120.00")

    def test_dates_parsed(self, invoice_payload):
        priced = self.service.price_invoice(invoice_payload(invoiceDate="2024-02-15T09:00:00Z"))
        assert priced.invoice_date == date(2024, 2, 15)
        assert priced.due_date == date(2024, 3, 16)

    def test_not_vat_registered(self, invoice_payload):
        priced = self.service.price_invoice(invoice_payload(), vat_registered=False)
        assert priced.totals.vat.is_zero
        assert priced.totals.total == Money.of("190.00")
        # Line results still show the VAT the line would carry
        assert priced.lines[0].calculation.vat_amount == Money.of("20.00")

    def test_legacy_vat_type_key(self, invoice_payload):
        payload = invoice_payload(lineItems=[
            {"description": "Legacy", "quantity": 2, "unitPrice": 100, "vatType": "STANDARD"},
        ])
        priced = self.service.price_invoice(payload)
        assert priced.totals.total == Money.of("240.00")

    def test_invalid_payload_not_priced(self, invoice_payload, captured_logs):
        with pytest.raises(RequestValidationError) as exc_info:
            self.service.price_invoice(invoice_payload(lineItems=[]))

        assert exc_info.value.errors[0].field == "lineItems"
        messages = [r["message"] for r in captured_logs()]
        assert "invoice_pricing_started" not in messages

    def test_to_dict(self, invoice_payload):
        data = self.service.price_invoice(invoice_payload()).to_dict()

        assert data["companyId"] == invoice_payload()["companyId"]
        assert data["invoiceDate"] == "2024-02-15"
        assert data["description"] == "February consultancy"
        assert data["subtotal"] == "190.00"
        assert data["total"] == "212.00"
        assert data["lineItems"][2] == {
            "description": "Child car seat",
            "quantity": "1",
            "unitPrice": "40.0",
            "vatCategory": "REDUCED",
            "vatAmount": "2.00",
            "lineTotal": "40.00",
        }

    def test_company_bound_in_logs(self, invoice_payload, captured_logs):
        self.service.price_invoice(invoice_payload())

        completed = next(r for r in captured_logs() if r["message"] == "invoice_pricing_completed")
        assert completed["company_id"] == invoice_payload()["companyId"]
        assert completed["total"] == "212.00"

    def test_request_and_invoice_ids_logged(self, invoice_payload, captured_logs):
        self.service.price_invoice(
            invoice_payload(), invoice_id=INVOICE_ID, request_id="req-42"
        )

        pricing = [r for r in captured_logs() if r["message"].startswith("invoice_pricing_")]
        assert len(pricing) == 2
        assert {r["invoice_id"] for r in pricing} == {str(INVOICE_ID)}
        assert {r["request_id"] for r in pricing} == {"req-42"}
        # engine lines emitted inside the call carry the ids too
        engine = [r for r in captured_logs() if r["logger"].startswith("ukbooks.engines")]
        assert engine and all(r["invoice_id"] == str(INVOICE_ID) for r in engine)

    def test_ids_not_left_bound(self, invoice_payload):
        self.service.price_invoice(invoice_payload(), request_id="req-42")
        assert LogContext.current() == {}


class TestRateSelection:
    """Tests for choosing rates by invoice date."""

    def test_fixed_rate_table(self, invoice_payload):
        service = InvoiceService(rates=RateTable(rates={"STANDARD": "17.5"}, version="T"))
        priced = service.price_invoice(invoice_payload())
        assert priced.totals.vat_breakdown[VATCategory.STANDARD] == Money.of("17.50")
        assert priced.totals.rate_version == "T"

    def test_lookup_receives_invoice_date(self, invoice_payload):
        seen = []

        def lookup(on_date):
            seen.append(on_date)
            return RateTable(rates={"STANDARD": "20"}, version="L")

        priced = InvoiceService(rate_lookup=lookup).price_invoice(invoice_payload())
        assert seen == [date(2024, 2, 15)]
        assert priced.totals.rate_version == "L"

    def test_historic_invoice_uses_historic_rate(self, invoice_payload):
        service = InvoiceService.with_rate_schedules()
        priced = service.price_invoice(invoice_payload(invoiceDate="2010-06-01"))

        assert priced.totals.rate_version == "UK-2010-01"
        assert priced.totals.vat_breakdown[VATCategory.STANDARD] == Money.of("17.50")

    def test_schedules_loaded_once(self, invoice_payload, monkeypatch):
        loads = []
        load = ukbooks_config.load_rate_schedules

        def counting_load(*args, **kwargs):
            loads.append(args)
            return load(*args, **kwargs)

        monkeypatch.setattr(ukbooks_config, "load_rate_schedules", counting_load)
        service = InvoiceService.with_rate_schedules()
        for invoice_date in ("2010-06-01", "2024-02-15", "2024-05-01"):
            service.price_invoice(invoice_payload(invoiceDate=invoice_date))

        assert len(loads) == 1

    def test_preloaded_schedule_set(self, invoice_payload):
        schedule_set = ukbooks_config.load_rate_schedule_set()
        service = InvoiceService.with_rate_schedules(schedule_set=schedule_set)
        priced = service.price_invoice(invoice_payload(invoiceDate="2010-06-01"))
        assert priced.totals.rate_version == "UK-2010-01"

    def test_current_invoice_uses_current_rate(self, invoice_payload):
        priced = InvoiceService.with_rate_schedules().price_invoice(invoice_payload())
        assert priced.totals.rate_version == "UK-2011-04"
        assert priced.totals.vat == Money.of("22.00")

    def test_strict_schedule_rates(self, invoice_payload):
        """Strict tables still accept every category the request schema allows."""
        priced = InvoiceService.with_rate_schedules(strict=True).price_invoice(invoice_payload())
        assert priced.totals.total == Money.of("212.00")

    def test_strict_table_missing_category(self, invoice_payload):
        """A strict table without a REDUCED rate refuses the REDUCED line."""
        table = RateTable(rates={"STANDARD": "20", "ZERO": "0"}, strict=True)
        with pytest.raises(UnknownVATCategoryError, match="REDUCED"):
            InvoiceService(rates=table).price_invoice(invoice_payload())
