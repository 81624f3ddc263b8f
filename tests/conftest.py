"""
Pytest fixtures for the UK Books test suite.

Provides:
- Structured logging configured once per session
- LogContext isolation between tests
- captured_logs for asserting on emitted log events
- Request payload factories for invoices and expenses
"""

import json
import logging
from io import StringIO

import pytest

from ukbooks_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

COMPANY_ID = "3f2b8c1e-6d4a-4f0e-9b7a-2c5d8e1f4a60"
CLIENT_ID = "9a1c7e52-0b3d-4e8f-a6c2-5d7f9e1b3c84"


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ukbooks logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate_invoice(items)
            logs = captured_logs()
            assert any(r["message"] == "invoice_totals_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ukbooks")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


@pytest.fixture
def invoice_payload():
    """Factory for a valid createInvoice body; keyword args override fields."""

    def _make(**overrides):
        payload = {
            "companyId": COMPANY_ID,
            "clientId": CLIENT_ID,
            "invoiceDate": "2024-02-15",
            "dueDate": "2024-03-16",
            "description": "February consultancy",
            "lineItems": [
                {"description": "Consultancy", "quantity": 1,
                 "unitPrice": 100.00, "vatCategory": "STANDARD"},
                {"description": "Books", "quantity": 1,
                 "unitPrice": 50.00, "vatCategory": "ZERO"},
                {"description": "Child car seat", "quantity": 1,
                 "unitPrice": 40.00, "vatCategory": "REDUCED"},
            ],
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def expense_payload():
    """Factory for a valid createExpense body; keyword args override fields."""

    def _make(**overrides):
        payload = {
            "companyId": COMPANY_ID,
            "date": "2024-02-20",
            "amount": 60.00,
            "category": "Office Supplies",
            "description": "Printer paper",
        }
        payload.update(overrides)
        return payload

    return _make
