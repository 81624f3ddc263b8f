"""
Data Transfer Objects for field-level validation.

These are pure data structures with no behaviour beyond construction helpers.
Request validation returns them; route handlers render them as a 400 body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, human-readable message, optional field
        path, and optional details dict.

    Non-goals:
        - Does NOT raise exceptions -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Contract:
        Aggregates zero or more ValidationErrors. is_valid is True only when
        there are no errors. bool(result) == result.is_valid.
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=False, errors=tuple(errors))

    @property
    def fields(self) -> tuple[str, ...]:
        """Field paths that failed, in error order, without duplicates."""
        seen: list[str] = []
        for error in self.errors:
            if error.field is not None and error.field not in seen:
                seen.append(error.field)
        return tuple(seen)

    def __bool__(self) -> bool:
        return self.is_valid
