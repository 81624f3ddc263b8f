"""RequestValidator -- Pure request-body validation functions."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from ukbooks_kernel.domain.dtos import ValidationError, ValidationResult
from ukbooks_kernel.exceptions import RequestValidationError
from ukbooks_kernel.logging_config import get_logger
from ukbooks_modules.validation.schemas import (
    RequestFieldSchema,
    RequestFieldType,
    RequestSchema,
)

logger = get_logger("modules.validation")

_MISSING = object()


def _lookup(payload: Mapping[str, Any], field: RequestFieldSchema) -> Any:
    for name in field.all_names:
        if name in payload:
            return payload[name]
    return _MISSING


def validate_request(payload: Any, schema: RequestSchema) -> ValidationResult:
    """Validate a request body against its schema, collecting every error."""
    if not isinstance(payload, Mapping):
        return ValidationResult.failure(
            ValidationError(
                code="INVALID_TYPE",
                message=f"Expected object for {schema.name}, got {type(payload).__name__}",
            )
        )

    errors = _validate_object(payload, schema.fields, schema.allow_unknown, prefix="")
    if not errors:
        for check in schema.checks:
            errors.extend(check(payload))

    if errors:
        logger.warning(
            "request_validation_failed",
            extra={
                "schema": schema.name,
                "error_count": len(errors),
                "error_codes": [e.code for e in errors],
                "fields": [e.field for e in errors],
            },
        )
        return ValidationResult.failure(*errors)

    logger.debug("request_validation_passed", extra={"schema": schema.name})
    return ValidationResult.success()


def require_valid(payload: Any, schema: RequestSchema) -> dict[str, Any]:
    """
    Validate and normalize a request body.

    Returns:
        A new dict keyed by canonical field names (aliases resolved),
        with defaults filled in. The input is not modified.

    Raises:
        RequestValidationError: If any field fails validation.
    """
    result = validate_request(payload, schema)
    if not result.is_valid:
        raise RequestValidationError(schema.name, result.errors)
    return _normalize(payload, schema.fields)


def _normalize(
    payload: Mapping[str, Any], fields: tuple[RequestFieldSchema, ...]
) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for field in fields:
        value = _lookup(payload, field)
        if value is _MISSING or value is None:
            if field.default is not None:
                normalized[field.name] = field.default
            continue
        if field.field_type == RequestFieldType.ARRAY and field.item_schema:
            value = [_normalize(item, field.item_schema) for item in value]
        normalized[field.name] = value
    return normalized


def _validate_object(
    payload: Mapping[str, Any],
    fields: tuple[RequestFieldSchema, ...],
    allow_unknown: bool,
    prefix: str,
) -> list[ValidationError]:
    errors: list[ValidationError] = []

    for field in fields:
        path = f"{prefix}{field.name}"
        value = _lookup(payload, field)
        errors.extend(_validate_field(value, field, path))

    if not allow_unknown:
        known = {n for f in fields for n in f.all_names}
        for key in payload:
            if key not in known:
                errors.append(
                    ValidationError(
                        code="UNKNOWN_FIELD",
                        message=f'"{prefix}{key}" is not allowed',
                        field=f"{prefix}{key}",
                    )
                )

    return errors


def _validate_field(
    value: Any,
    field: RequestFieldSchema,
    path: str,
) -> list[ValidationError]:
    """Validate a single field value against its schema."""
    if value is _MISSING or value is None:
        if field.required:
            return [
                ValidationError(
                    code="MISSING_REQUIRED_FIELD",
                    message=f'"{path}" is required',
                    field=path,
                )
            ]
        return []

    type_error = validate_field_type(value, field.field_type, path)
    if type_error:
        return [type_error]

    errors = validate_field_constraints(value, field, path)
    if errors:
        return errors

    if field.rule is not None:
        check = field.rule(value)
        if not check.is_valid:
            return [
                ValidationError(
                    code="INVALID_FORMAT",
                    message=check.message,
                    field=path,
                )
            ]

    if field.field_type == RequestFieldType.ARRAY and field.item_schema:
        for i, item in enumerate(value):
            item_path = f"{path}[{i}]"
            if not isinstance(item, Mapping):
                errors.append(
                    ValidationError(
                        code="INVALID_TYPE",
                        message=f"Expected object at {item_path}, got {type(item).__name__}",
                        field=item_path,
                    )
                )
                continue
            errors.extend(
                _validate_object(item, field.item_schema, False, prefix=f"{item_path}.")
            )

    return errors


def _as_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def validate_field_type(
    value: Any,
    field_type: RequestFieldType,
    path: str,
) -> ValidationError | None:
    """Validate that a value matches the expected type."""
    if field_type == RequestFieldType.STRING:
        if not isinstance(value, str):
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected string at {path}, got {type(value).__name__}",
                field=path,
            )

    elif field_type == RequestFieldType.DECIMAL:
        if _as_decimal(value) is None:
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected number at {path}, got {type(value).__name__}",
                field=path,
            )

    elif field_type == RequestFieldType.BOOLEAN:
        if not isinstance(value, bool):
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected boolean at {path}, got {type(value).__name__}",
                field=path,
            )

    elif field_type == RequestFieldType.DATE:
        if isinstance(value, str):
            try:
                datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return ValidationError(
                    code="INVALID_DATE_FORMAT",
                    message=f"Invalid date format at {path}: expected ISO 8601",
                    field=path,
                )
        elif not isinstance(value, date):
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected date at {path}, got {type(value).__name__}",
                field=path,
            )

    elif field_type == RequestFieldType.UUID:
        if isinstance(value, str):
            try:
                UUID(value)
            except ValueError:
                return ValidationError(
                    code="INVALID_UUID_FORMAT",
                    message=f"Invalid UUID format at {path}",
                    field=path,
                )
        elif not isinstance(value, UUID):
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected UUID at {path}, got {type(value).__name__}",
                field=path,
            )

    elif field_type == RequestFieldType.ARRAY:
        if not isinstance(value, (list, tuple)):
            return ValidationError(
                code="INVALID_TYPE",
                message=f"Expected array at {path}, got {type(value).__name__}",
                field=path,
            )

    return None


def validate_field_constraints(
    value: Any,
    field: RequestFieldSchema,
    path: str,
) -> list[ValidationError]:
    """Validate field constraints (positivity, min/max, length, allowed_values)."""
    errors: list[ValidationError] = []

    if field.field_type == RequestFieldType.DECIMAL:
        number = _as_decimal(value)
        if field.positive and number <= 0:
            errors.append(
                ValidationError(
                    code="VALUE_NOT_POSITIVE",
                    message=f'"{path}" must be a positive number',
                    field=path,
                )
            )
        if field.min_value is not None and number < Decimal(str(field.min_value)):
            errors.append(
                ValidationError(
                    code="VALUE_TOO_SMALL",
                    message=f"Value at {path} is {value}, minimum is {field.min_value}",
                    field=path,
                )
            )
        if field.max_value is not None and number > Decimal(str(field.max_value)):
            errors.append(
                ValidationError(
                    code="VALUE_TOO_LARGE",
                    message=f"Value at {path} is {value}, maximum is {field.max_value}",
                    field=path,
                )
            )

    if field.field_type == RequestFieldType.STRING:
        if value == "" and not field.allow_empty:
            errors.append(
                ValidationError(
                    code="EMPTY_STRING",
                    message=f'"{path}" is not allowed to be empty',
                    field=path,
                )
            )
            return errors

        if field.min_length is not None and len(value) < field.min_length:
            errors.append(
                ValidationError(
                    code="STRING_TOO_SHORT",
                    message=f"String at {path} is {len(value)} chars, minimum is {field.min_length}",
                    field=path,
                )
            )
        if field.max_length is not None and len(value) > field.max_length:
            errors.append(
                ValidationError(
                    code="STRING_TOO_LONG",
                    message=f"String at {path} is {len(value)} chars, maximum is {field.max_length}",
                    field=path,
                )
            )

    if field.field_type == RequestFieldType.ARRAY and field.min_items is not None:
        if len(value) < field.min_items:
            errors.append(
                ValidationError(
                    code="TOO_FEW_ITEMS",
                    message=f'"{path}" must contain at least {field.min_items} item(s)',
                    field=path,
                )
            )

    if field.allowed_values is not None and value not in field.allowed_values:
        errors.append(
            ValidationError(
                code="VALUE_NOT_ALLOWED",
                message=f"Value '{value}' at {path} not in allowed values: {sorted(field.allowed_values)}",
                field=path,
            )
        )

    return errors
