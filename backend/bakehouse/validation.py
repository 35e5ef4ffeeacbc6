from __future__ import annotations
from datetime import date, datetime
from bakehouse.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import BakehouseError
from .models import SHIFTS, BATCH_STATUSES


class ValidationError(BakehouseError):
    """400-level input problem."""
    status_code = 400


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


BATCH_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"bread_type_id", "actual_quantity", "target_quantity", "shift", "notes", "start_time", "status"},
    required_on_create={"bread_type_id", "actual_quantity", "shift"},
)

BATCH_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "actual_quantity", "target_quantity", "notes", "end_time"},
)

SALE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"bread_type_id", "quantity", "unit_price", "discount", "shift"},
    required_on_create={"bread_type_id", "quantity", "shift"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{key} must be an integer, not a decimal")
        raise ValidationError(f"{key} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Unknown keys are ignored rather than rejected; clients post whole form
    objects.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError("Missing required fields", details=", ".join(missing))

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_shift(value: Any) -> str:
    """Shift is mandatory and must be one of the enumerated values."""
    if not value or value not in SHIFTS:
        raise ValidationError("Valid shift (morning or night) is required")
    return value


def optional_shift(value: Any) -> str | None:
    """Query-string filter: unknown values are ignored, not rejected."""
    return value if value in SHIFTS else None


def optional_status(value: Any) -> str | None:
    return value if value in BATCH_STATUSES else None


def enforce_rules_batch(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "shift" in patch:
        require_shift(patch["shift"])

    if "status" in patch and patch["status"] not in BATCH_STATUSES:
        raise ValidationError("status must be one of: " + ", ".join(BATCH_STATUSES))

    if "actual_quantity" in patch and patch["actual_quantity"] is not None:
        if patch["actual_quantity"] < 0:
            raise ValidationError("actual_quantity must be >= 0")

    if "target_quantity" in patch and patch["target_quantity"] is not None:
        if patch["target_quantity"] < 0:
            raise ValidationError("target_quantity must be >= 0")


def enforce_rules_sale(patch: dict) -> None:
    require_shift(patch.get("shift"))

    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")

    if patch.get("unit_price") is not None and patch["unit_price"] < 0:
        raise ValidationError("unit_price must be >= 0")

    if patch.get("discount") is not None and patch["discount"] < 0:
        raise ValidationError("discount must be >= 0")


def optional_date(value: Any, key: str = "date") -> date | None:
    """Query-string date filter; garbage is a 400, absence is None."""
    if value in (None, ""):
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be a date (YYYY-MM-DD)")


def optional_int(value: Any, key: str) -> int | None:
    """Accepts ints and integer strings ("3"); bools and floats are rejected."""
    if value in (None, ""):
        return None
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{key} must be an integer")
