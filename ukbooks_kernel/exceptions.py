"""
Typed Exception Hierarchy for UK Books.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from UKBooksError:

    UKBooksError (base)
    |
    +-- CategoryError
    |   +-- UnknownVATCategoryError
    |   +-- UnknownVehicleCategoryError
    |
    +-- ConfigError
    |   +-- RateScheduleNotFoundError
    |   +-- InvalidRateScheduleError
    |
    +-- RequestValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Category        | UNKNOWN_VAT_CATEGORY        | Strict mode, VAT category not in table
                | UNKNOWN_VEHICLE_CATEGORY    | Strict mode, vehicle not in table
----------------|-----------------------------|-----------------------------------------
Config          | RATE_SCHEDULE_NOT_FOUND     | No schedule effective on the date
                | INVALID_RATE_SCHEDULE       | Schedule file fails validation
----------------|-----------------------------|-----------------------------------------
Request         | REQUEST_VALIDATION_FAILED   | Payload fails its request schema

===============================================================================
HANDLING PATTERNS
===============================================================================

The calculators never raise in permissive mode: an unknown category is a zero
rate. Category errors only appear when a caller opts into strict mode.

Request validation errors are the only ones meant for end users. Route
handlers render them directly:

    try:
        priced = invoice_service.price_invoice(payload, vat_registered=True)
    except RequestValidationError as e:
        return e.to_dict(), e.http_status

Codes are class attributes so middleware can map them without instantiation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from ukbooks_kernel.domain.dtos import ValidationError


class UKBooksError(Exception):
    """
    Base exception for all UK Books errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "UKBOOKS_ERROR"


# Category-related exceptions


class CategoryError(UKBooksError):
    """Base exception for rate-table category lookups."""

    code: str = "CATEGORY_ERROR"


class UnknownVATCategoryError(CategoryError):
    """VAT category is not present in the active rate table."""

    code: str = "UNKNOWN_VAT_CATEGORY"

    def __init__(self, category: Any, known: Iterable[str] = ()):
        self.category = category
        self.known = tuple(sorted(known))
        super().__init__(
            f"Unknown VAT category: {category!r} (expected one of {', '.join(self.known)})"
        )


class UnknownVehicleCategoryError(CategoryError):
    """Vehicle category is not present in the mileage rate table."""

    code: str = "UNKNOWN_VEHICLE_CATEGORY"

    def __init__(self, vehicle_category: Any, known: Iterable[str] = ()):
        self.vehicle_category = vehicle_category
        self.known = tuple(sorted(known))
        super().__init__(
            f"Unknown vehicle category: {vehicle_category!r} "
            f"(expected one of {', '.join(self.known)})"
        )


# Configuration exceptions


class ConfigError(UKBooksError):
    """Base exception for rate-schedule configuration errors."""

    code: str = "CONFIG_ERROR"


class RateScheduleNotFoundError(ConfigError):
    """No configured rate schedule is effective on the requested date."""

    code: str = "RATE_SCHEDULE_NOT_FOUND"

    def __init__(self, as_of_date: date, config_dir: str):
        self.as_of_date = as_of_date
        self.config_dir = config_dir
        super().__init__(
            f"No rate schedule effective on {as_of_date.isoformat()} in {config_dir}"
        )


class InvalidRateScheduleError(ConfigError):
    """One or more rate schedules failed structural validation."""

    code: str = "INVALID_RATE_SCHEDULE"

    def __init__(self, problems: Iterable[str]):
        self.problems = tuple(problems)
        super().__init__(
            f"Rate schedule validation failed: {'; '.join(self.problems)}"
        )


# Request validation


class RequestValidationError(UKBooksError):
    """
    Request payload failed its schema.

    Carries the field-level errors and the HTTP status the route layer
    should answer with.
    """

    code: str = "REQUEST_VALIDATION_FAILED"
    http_status: int = 400

    def __init__(self, schema_name: str, errors: Iterable[ValidationError]):
        self.schema_name = schema_name
        self.errors = tuple(errors)
        first = self.errors[0].message if self.errors else "invalid request"
        super().__init__(
            f"{schema_name}: {first}"
            + (f" (+{len(self.errors) - 1} more)" if len(self.errors) > 1 else "")
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON body for a 400 response."""
        return {
            "error": self.code,
            "message": self.errors[0].message if self.errors else "Invalid request",
            "details": [e.to_dict() for e in self.errors],
        }
