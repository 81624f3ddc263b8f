"""
Request Validation Module (``ukbooks_modules.validation``).

Responsibility
--------------
Field-level validation of create/update request bodies, with the UK
regulatory identifier checks plugged in as custom rules. A failed request
produces ``ValidationError`` records (code, message, field) which
``require_valid`` raises as a ``RequestValidationError`` carrying
``http_status = 400``.

Architecture position
---------------------
**Modules layer** -- called by route handlers before an entity reaches
persistence or the calculation engines.
"""

from ukbooks_modules.validation.identifiers import (
    IdentifierCheck,
    validate_company_number,
    validate_email,
    validate_phone_number,
    validate_postcode,
    validate_utr,
    validate_vat_number,
)
from ukbooks_modules.validation.schemas import (
    CREATE_CLIENT,
    CREATE_COMPANY,
    CREATE_EXPENSE,
    CREATE_INVOICE,
    RequestFieldSchema,
    RequestFieldType,
    RequestSchema,
)
from ukbooks_modules.validation.validator import require_valid, validate_request

__all__ = [
    "CREATE_CLIENT",
    "CREATE_COMPANY",
    "CREATE_EXPENSE",
    "CREATE_INVOICE",
    "IdentifierCheck",
    "RequestFieldSchema",
    "RequestFieldType",
    "RequestSchema",
    "require_valid",
    "validate_company_number",
    "validate_email",
    "validate_phone_number",
    "validate_postcode",
    "validate_request",
    "validate_utr",
    "validate_vat_number",
]
