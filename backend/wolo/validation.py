from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date, parse_iso_datetime


# Maximum monetary amount accepted from clients
MAX_AMOUNT = Decimal("9999999999.99")


class WoloError(Exception):
    """Base class for errors reported across a component boundary."""

    error_type = "WoloError"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(WoloError):
    """400-level input problem."""

    error_type = "ValidationError"
    status_code = 400


class ConflictError(ValidationError):
    """409-level business rule conflict (e.g., barcode already in use)."""

    error_type = "ConflictError"
    status_code = 409


class NotFoundError(WoloError):
    """Target entity does not exist or is soft-deleted."""

    error_type = "NotFoundError"
    status_code = 404


class StorageError(WoloError):
    """The underlying database operation failed."""

    error_type = "StorageError"
    status_code = 500


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required on create
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds the maximum amount")
    return amount


def to_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation and decimal points
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


BOOL_TRUE = {"1", "true", "yes", "on"}


def _parse_temporal(parser, value: Any, key: str, label: str):
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a {label}")
    try:
        return parser(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 {label}")


def _coerce_value(col, value: Any):
    """Client value -> Python value for the column's type."""
    if value is None:
        return None
    coltype = col.type

    if isinstance(coltype, Boolean):
        if isinstance(value, str):
            return value.strip().lower() in BOOL_TRUE
        return bool(value)
    if isinstance(coltype, Integer):
        return to_int(value, col.key)
    if isinstance(coltype, Numeric):
        return to_decimal(value, col.key)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        return _parse_temporal(parse_iso_datetime, value, col.key, "datetime")
    if isinstance(coltype, Date):
        if isinstance(value, date):
            return parse_iso_date(value)
        return _parse_temporal(parse_iso_date, value, col.key, "date")
    if isinstance(coltype, String):
        return str(value).strip()
    return value


def _check_field(col, key: str, raw: Any):
    """Coerce one client value against its column; None only where nullable."""
    if raw is None:
        if not col.nullable:
            raise ValidationError(f"{key} cannot be null")
        return None

    value = _coerce_value(col, raw)
    if isinstance(value, str) and isinstance(col.type, String):
        if value == "" and not col.nullable:
            raise ValidationError(f"{key} cannot be blank")
        limit = col.type.length
        if limit and len(value) > limit:
            raise ValidationError(f"{key} exceeds max length {limit}")
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
    passthrough: frozenset[str] = frozenset(),
) -> dict:
    """
    Clean a client payload into a column patch.

    Every key must be in policy.writable_fields and map to a column of
    `model` (or be listed in `passthrough`, which is copied as-is for the
    caller to serialize). Values are coerced by column type and checked
    for nullability and String length.

    partial=False enforces policy.required_on_create; partial=True only
    checks the keys that are present.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if _is_blank(payload.get(f)))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key in passthrough:
            patch[key] = raw
        elif key in cols:
            patch[key] = _check_field(cols[key], key, raw)
        else:
            raise ValidationError(f"Unknown field: {key}")
    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for field in ("cost_price", "selling_price", "wholesale_price", "total_bulk_cost"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
    if patch.get("reorder_level") is not None and patch["reorder_level"] < 0:
        raise ValidationError("reorder_level must be >= 0")
    if patch.get("quantity_purchased") is not None and patch["quantity_purchased"] < 0:
        raise ValidationError("quantity_purchased must be >= 0")
    for field in ("images", "variants"):
        if field in patch and patch[field] is not None and not isinstance(patch[field], (list, tuple)):
            raise ValidationError(f"{field} must be a list")
