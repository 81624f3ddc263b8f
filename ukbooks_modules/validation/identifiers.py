"""
UK regulatory identifier checks (``ukbooks_modules.validation.identifiers``).

Responsibility
--------------
Shape checks for UK identifiers a small business records: UTR, VAT
registration number, Companies House number, postcode, email and phone.
They check format only. Nothing here calls HMRC or Companies House.

Invariants enforced
-------------------
* Pure: the same input always yields the same ``IdentifierCheck``.
* Never raises. Any value is accepted; non-strings are simply invalid.
* Whole-string matching (``re.fullmatch``), so a trailing newline or suffix
  never sneaks through.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_UTR_RE = re.compile(r"\d{10}", re.ASCII)
_VAT_NUMBER_RE = re.compile(r"GB\d{9}", re.ASCII)
_COMPANY_NUMBER_RE = re.compile(r"[A-Z0-9]{8}")
_POSTCODE_RE = re.compile(r"[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}", re.IGNORECASE | re.ASCII)
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# +44 or 0, a non-zero digit, then 8-10 more digits. Covers both the
# 10-digit and 11-digit national number lengths.
_PHONE_RE = re.compile(r"(\+44|0)[1-9]\d{8,10}", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s")

UTR_MESSAGE = "UTR must be exactly 10 digits"
VAT_NUMBER_MESSAGE = "VAT number must be in format GB123456789"
COMPANY_NUMBER_MESSAGE = "Company number must be 8 characters"
POSTCODE_MESSAGE = "Invalid UK postcode format"
EMAIL_MESSAGE = "Invalid email format"
PHONE_MESSAGE = "Invalid UK phone number format"


@dataclass(frozen=True)
class IdentifierCheck:
    """Outcome of an identifier check. ``message`` is empty when valid."""

    is_valid: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.is_valid

    def to_dict(self) -> dict[str, Any]:
        return {"isValid": self.is_valid, "message": self.message}


def _check(pattern: re.Pattern[str], value: Any, message: str) -> IdentifierCheck:
    if isinstance(value, str) and pattern.fullmatch(value):
        return IdentifierCheck(is_valid=True)
    return IdentifierCheck(is_valid=False, message=message)


def validate_utr(utr: Any) -> IdentifierCheck:
    """Unique Taxpayer Reference: exactly 10 digits."""
    return _check(_UTR_RE, utr, UTR_MESSAGE)


def validate_vat_number(vat_number: Any) -> IdentifierCheck:
    """VAT registration number: ``GB`` followed by 9 digits."""
    return _check(_VAT_NUMBER_RE, vat_number, VAT_NUMBER_MESSAGE)


def validate_company_number(company_number: Any) -> IdentifierCheck:
    """Companies House number: 8 upper-case letters or digits."""
    return _check(_COMPANY_NUMBER_RE, company_number, COMPANY_NUMBER_MESSAGE)


def validate_postcode(postcode: Any) -> IdentifierCheck:
    """UK postcode, any case, with or without the inward-code space."""
    value = postcode.upper() if isinstance(postcode, str) else postcode
    return _check(_POSTCODE_RE, value, POSTCODE_MESSAGE)


def validate_email(email: Any) -> IdentifierCheck:
    """Light ``local@domain.tld`` shape check, not full RFC 5322."""
    return _check(_EMAIL_RE, email, EMAIL_MESSAGE)


def validate_phone_number(phone: Any) -> IdentifierCheck:
    """UK phone number in national (0...) or international (+44...) form."""
    value = _WHITESPACE_RE.sub("", phone) if isinstance(phone, str) else phone
    return _check(_PHONE_RE, value, PHONE_MESSAGE)
