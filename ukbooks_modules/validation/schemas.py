"""
Request schema data structures and the create/update request schemas.

Immutable, declarative definitions of what each create/update endpoint
accepts. The regulatory identifier checks plug in as ``rule`` callbacks so
a bad UTR or VAT number surfaces as a field-level error before anything is
persisted. Rules spanning several fields plug in as schema ``checks``,
which run once every field is individually valid.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ukbooks_engines.rates import VATCategory, VehicleCategory
from ukbooks_kernel.domain.dtos import ValidationError
from ukbooks_kernel.domain.values import parse_decimal
from ukbooks_modules.validation.identifiers import (
    IdentifierCheck,
    validate_company_number,
    validate_email,
    validate_phone_number,
    validate_utr,
    validate_vat_number,
)


class RequestFieldType(str, Enum):
    """Supported field types in request schemas."""

    STRING = "string"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"  # ISO 8601 date or datetime
    UUID = "uuid"
    ARRAY = "array"  # Array of objects


@dataclass(frozen=True)
class RequestFieldSchema:
    """
    Schema definition for a single request field.

    Immutable and hashable for use in frozen dataclasses.
    """

    name: str
    field_type: RequestFieldType
    required: bool = False
    aliases: tuple[str, ...] = ()

    # Numeric constraints; ``positive`` means strictly greater than zero
    positive: bool = False
    min_value: Decimal | int | None = None
    max_value: Decimal | int | None = None

    # String constraints
    min_length: int | None = None
    max_length: int | None = None
    allow_empty: bool = False

    # Enum-like constraint
    allowed_values: frozenset[str] | None = None

    # Custom format rule, only run when a value is present
    rule: Callable[[Any], IdentifierCheck] | None = None

    # For ARRAY type
    item_schema: tuple[RequestFieldSchema, ...] | None = None
    min_items: int | None = None

    # Value used when the field is absent
    default: Any = None

    def __post_init__(self) -> None:
        if self.field_type == RequestFieldType.ARRAY and not self.item_schema:
            raise ValueError(
                f"Field '{self.name}' of type ARRAY must have item_schema"
            )

    @property
    def all_names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


@dataclass(frozen=True)
class RequestSchema:
    """Complete schema for one request body."""

    name: str
    fields: tuple[RequestFieldSchema, ...]
    allow_unknown: bool = False
    description: str = ""
    # Cross-field rules over the raw body; each returns its errors
    checks: tuple[Callable[[Mapping[str, Any]], list[ValidationError]], ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("schema name is required")

    def known_keys(self) -> frozenset[str]:
        return frozenset(n for f in self.fields for n in f.all_names)


# ---------------------------------------------------------------------------
# Create / update request schemas
# ---------------------------------------------------------------------------

VAT_CATEGORY_VALUES = frozenset(c.value for c in VATCategory)
VEHICLE_CATEGORY_VALUES = frozenset(c.value for c in VehicleCategory)


def vat_within_amount(payload: Mapping[str, Any]) -> list[ValidationError]:
    """Reclaimable VAT is part of the expense amount, so it cannot exceed it."""
    amount = parse_decimal(payload.get("amount"))
    vat_amount = parse_decimal(payload.get("vatAmount"))
    if amount is None or vat_amount is None or vat_amount <= amount:
        return []
    return [ValidationError(
        code="VAT_EXCEEDS_AMOUNT",
        message='"vatAmount" cannot exceed "amount"',
        field="vatAmount",
        details={"amount": str(amount), "vatAmount": str(vat_amount)},
    )]


CREATE_COMPANY = RequestSchema(
    name="createCompany",
    description="Create or update a company",
    fields=(
        RequestFieldSchema("name", RequestFieldType.STRING, required=True,
                           min_length=1, max_length=100),
        RequestFieldSchema("vatNumber", RequestFieldType.STRING, rule=validate_vat_number),
        RequestFieldSchema("companyNumber", RequestFieldType.STRING,
                           rule=validate_company_number),
        RequestFieldSchema("utr", RequestFieldType.STRING, rule=validate_utr),
    ),
)


CREATE_CLIENT = RequestSchema(
    name="createClient",
    description="Create or update a client",
    fields=(
        RequestFieldSchema("companyId", RequestFieldType.UUID, required=True),
        RequestFieldSchema("name", RequestFieldType.STRING, required=True,
                           min_length=1, max_length=100),
        RequestFieldSchema("contactPerson", RequestFieldType.STRING, max_length=100),
        RequestFieldSchema("email", RequestFieldType.STRING, rule=validate_email),
        RequestFieldSchema("phone", RequestFieldType.STRING, rule=validate_phone_number),
        RequestFieldSchema("address", RequestFieldType.STRING),
        RequestFieldSchema("vatNumber", RequestFieldType.STRING, rule=validate_vat_number),
        RequestFieldSchema("notes", RequestFieldType.STRING, max_length=500, allow_empty=True),
        RequestFieldSchema("status", RequestFieldType.STRING,
                           allowed_values=frozenset({"active", "inactive"}),
                           default="active"),
    ),
)


INVOICE_LINE_ITEM = (
    RequestFieldSchema("description", RequestFieldType.STRING, required=True),
    RequestFieldSchema("quantity", RequestFieldType.DECIMAL, required=True, positive=True),
    RequestFieldSchema("unitPrice", RequestFieldType.DECIMAL, required=True, positive=True),
    RequestFieldSchema("vatCategory", RequestFieldType.STRING, required=True,
                       aliases=("vatType",), allowed_values=VAT_CATEGORY_VALUES),
)


CREATE_INVOICE = RequestSchema(
    name="createInvoice",
    description="Create or update an invoice with its full set of lines",
    fields=(
        RequestFieldSchema("companyId", RequestFieldType.UUID, required=True),
        RequestFieldSchema("clientId", RequestFieldType.UUID, required=True),
        RequestFieldSchema("invoiceDate", RequestFieldType.DATE, required=True),
        RequestFieldSchema("dueDate", RequestFieldType.DATE, required=True),
        RequestFieldSchema("description", RequestFieldType.STRING),
        RequestFieldSchema("lineItems", RequestFieldType.ARRAY, required=True,
                           item_schema=INVOICE_LINE_ITEM, min_items=1),
    ),
)


CREATE_EXPENSE = RequestSchema(
    name="createExpense",
    description="Create or update an expense, optionally a mileage claim",
    fields=(
        RequestFieldSchema("companyId", RequestFieldType.UUID, required=True),
        RequestFieldSchema("date", RequestFieldType.DATE, required=True),
        RequestFieldSchema("amount", RequestFieldType.DECIMAL, required=True, positive=True),
        RequestFieldSchema("category", RequestFieldType.STRING, required=True),
        RequestFieldSchema("description", RequestFieldType.STRING),
        # Reclaimable input VAT included in amount
        RequestFieldSchema("vatAmount", RequestFieldType.DECIMAL, min_value=0),
        RequestFieldSchema("mileage", RequestFieldType.DECIMAL, positive=True),
        RequestFieldSchema("vehicleCategory", RequestFieldType.STRING,
                           aliases=("vehicleType",),
                           allowed_values=VEHICLE_CATEGORY_VALUES),
    ),
    checks=(vat_within_amount,),
)
