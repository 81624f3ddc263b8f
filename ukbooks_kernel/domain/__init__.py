"""
Pure domain layer.

Value objects and DTOs with NO dependencies on:
- Database
- Network
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from ukbooks_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ukbooks_kernel.domain.dtos import ValidationError, ValidationResult
from ukbooks_kernel.domain.values import GBP, Currency, Money, parse_decimal, to_decimal

__all__ = [
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "GBP",
    "Money",
    "ValidationError",
    "ValidationResult",
    "parse_decimal",
    "to_decimal",
]
