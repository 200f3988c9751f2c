from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError, ConflictError  # noqa: F401  (re-exported for services)
from .time_utils import parse_iso_datetime


# Largest amount any money column accepts, in minor units
MAX_AMOUNT_CENTS = 999_999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write for one model.

    writable_fields is the allowlist; anything else in a payload is rejected.
    required_on_create only applies when partial=False.
    """
    writable_fields: set[str]
    required_on_create: frozenset[str] = frozenset()


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str) -> int:
    n = coerce_int(value, field)
    if n <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return n


def require_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    """Case-insensitive enum check; returns the canonical upper-case value."""
    choices = tuple(choices)
    if not isinstance(value, str) or value.strip().upper() not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}")
    return value.strip().upper()


def require_amount(value: Any, field: str, *, allow_zero: bool = True) -> int:
    amount = coerce_int(value, field)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    if amount > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")
    return amount


def _to_datetime(value: Any, name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a datetime")
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")
    return parsed


def _clean(column, value: Any):
    """Coerce one non-null value to the column's Python type."""
    if isinstance(column.type, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{column.key} must be a boolean")
        return value

    if isinstance(column.type, Integer):
        return coerce_int(value, column.key)

    if isinstance(column.type, DateTime):
        return _to_datetime(value, column.key)

    if isinstance(column.type, (String, Text)):
        text = str(value).strip()
        if text == "" and not column.nullable:
            raise ValidationError(f"{column.key} cannot be blank")
        limit = getattr(column.type, "length", None)
        if limit and len(text) > limit:
            raise ValidationError(f"{column.key} exceeds max length {limit}")
        return text

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a JSON body into a patch dict for model.

    Keys must be in the policy allowlist and map to real columns. Values
    are coerced from the column type and checked against nullability and
    String length. With partial=False every required_on_create key must be
    present; with partial=True only the keys given are checked.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _clean(column, raw)

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Money and stock rules the column metadata cannot express."""
    for name in ("price_cents", "cost_price_cents"):
        if patch.get(name) is not None:
            require_amount(patch[name], name)

    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")

    if patch.get("sku") == "":
        # Blank SKU means "no SKU" so the unique index ignores it
        patch["sku"] = None


def enforce_rules_expense(patch: dict) -> None:
    if "amount_cents" in patch:
        require_amount(patch["amount_cents"], "amount_cents", allow_zero=False)
    if "category" in patch:
        from .models import EXPENSE_CATEGORIES
        patch["category"] = require_choice(patch["category"], "category", EXPENSE_CATEGORIES)
