from __future__ import annotations
from datetime import datetime
from .time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any, Iterable

from flask import request
from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a single line quantity or stock count
MAX_QUANTITY = 100_000


class ValidationError(ValueError):
    """400-level input problem, optionally tied to a field."""

    def __init__(self, message: str, field: str | None = None, details: list[dict] | None = None):
        super().__init__(message)
        self.field = field
        if details is None:
            details = [{"field": field, "message": message}] if field else []
        self.details = details

    def to_dict(self) -> dict:
        data = {"error": str(self)}
        if self.details:
            data["details"] = self.details
        return data


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        data = {"error": str(self)}
        if self.details:
            data["details"] = self.details
        return data


class NotFoundError(LookupError):
    """404-level missing entity."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: allowed values for enumerated string fields
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    choices: dict[str, Iterable[str]] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects floats, decimals, scientific notation and bools."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", field=field)
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)", field=field)
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)", field=field)
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", field=field)
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal", field=field)
    raise ValidationError(f"{field} must be an integer", field=field)


def coerce_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off", ""}:
            return False
        raise ValidationError(f"{field} must be a boolean", field=field)
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"{field} must be a boolean", field=field)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        return coerce_bool(value, col.key)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", field=col.key)
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", field=col.key)
            return dt
        raise ValidationError(f"{col.key} must be a datetime", field=col.key)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string", field=col.key)
        return str(value).strip()

    # Default: leave as-is
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
    - enumerated choices
    Returns a cleaned patch dict with only writable fields.

    Every field problem is collected, so the resulting ValidationError carries
    one detail entry per offending field.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[dict] = []

    required = policy.required_on_create or set()
    if not partial:
        for f in sorted(required):
            raw = payload.get(f)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors.append({"field": f, "message": f"{f} is required"})

    cols = _columns_by_key(model)
    choices = policy.choices or {}

    patch: dict = {}

    for k, raw in payload.items():
        # Unknown / non-writable fields
        if k not in policy.writable_fields or k not in cols:
            errors.append({"field": k, "message": f"Field not allowed: {k}"})
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable and k not in required:
                errors.append({"field": k, "message": f"{k} cannot be null"})
            elif col.nullable:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as exc:
            errors.append({"field": k, "message": str(exc)})
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                if k not in required or partial:
                    errors.append({"field": k, "message": f"{k} cannot be blank"})
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.append({"field": k, "message": f"{k} exceeds max length {col.type.length}"})
                continue

        if k in choices and val is not None and val not in choices[k]:
            allowed = ", ".join(choices[k])
            errors.append({"field": k, "message": f"{k} must be one of: {allowed}"})
            continue

        patch[k] = val

    if errors:
        raise ValidationError("Invalid payload", details=errors)

    return patch


def require_choice(value: Any, allowed: Iterable[str], field: str) -> str:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}", field=field)
    return value


def enforce_price(value: int | None, field: str) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{field} must be >= 0", field=field)
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}", field=field)


def enforce_quantity(value: int, field: str, *, allow_zero: bool = False) -> None:
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValidationError(f"{field} must be {bound}", field=field)
    if value > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}", field=field)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for field in ("store_price_cents", "online_price_cents"):
        if field in patch:
            enforce_price(patch[field], field)


def parse_line_items(raw_items: Any, field: str = "items") -> list[dict]:
    """
    Normalize sale/order line items.

    Each item needs product_id, color_name, size_label and quantity (> 0);
    unit_price_cents is optional (defaults to the channel price).
    `color`/`size` are accepted as aliases of `color_name`/`size_label`.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError(f"{field} must be a non-empty list", field=field)

    errors: list[dict] = []
    items: list[dict] = []
    for idx, raw in enumerate(raw_items):
        prefix = f"{field}[{idx}]"
        if not isinstance(raw, dict):
            errors.append({"field": prefix, "message": "must be an object"})
            continue

        item: dict = {}
        try:
            item["product_id"] = coerce_int(raw.get("product_id"), f"{prefix}.product_id")
        except ValidationError as exc:
            errors.append({"field": f"{prefix}.product_id", "message": str(exc)})

        for key, alias in (("color_name", "color"), ("size_label", "size")):
            value = raw.get(key, raw.get(alias))
            if value is None or str(value).strip() == "":
                errors.append({"field": f"{prefix}.{key}", "message": f"{key} is required"})
            else:
                item[key] = str(value).strip()

        try:
            qty = coerce_int(raw.get("quantity"), f"{prefix}.quantity")
            enforce_quantity(qty, f"{prefix}.quantity")
            item["quantity"] = qty
        except ValidationError as exc:
            errors.append({"field": f"{prefix}.quantity", "message": str(exc)})

        if raw.get("unit_price_cents") is not None:
            try:
                price = coerce_int(raw["unit_price_cents"], f"{prefix}.unit_price_cents")
                enforce_price(price, f"{prefix}.unit_price_cents")
                item["unit_price_cents"] = price
            except ValidationError as exc:
                errors.append({"field": f"{prefix}.unit_price_cents", "message": str(exc)})
        else:
            item["unit_price_cents"] = None

        items.append(item)

    if errors:
        raise ValidationError("Invalid line items", details=errors)
    return items


def json_object_body() -> dict:
    """Request JSON as a dict. A missing or empty body reads as {}."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data
