from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum single money amount accepted from a client: 9,999,999,999.99
# This keeps nonsensical amounts out of the ledger
MAX_MONEY = Decimal("9999999999.99")

ZERO = Decimal("0")

FIELD_TEXT = "text"
FIELD_MONEY = "money"
FIELD_INT = "int"
FIELD_BOOL = "bool"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate customer phone)."""


class NotFoundError(LookupError):
    """404-level lookup miss for a record referenced by id."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - field_types: how each client field is coerced (text, money, int, bool)
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: closed vocabularies for specific text fields
    """
    field_types: dict[str, str]
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    choices: dict[str, tuple[str, ...]] | None = None


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a client or stored value into a Decimal.

    Floats go through repr() so 0.1 stays 0.1 instead of its binary expansion.
    None and "" are treated as zero, mirroring how the stored document omits
    unset amounts.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"{field} must be a finite number")
        return value
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{field} must be a finite number")
        return Decimal(repr(value))
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return ZERO
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
        if not result.is_finite():
            raise ValidationError(f"{field} must be a finite number")
        return result
    raise ValidationError(f"{field} must be a number")


def as_number(value: Decimal) -> int | float:
    """Decimal -> JSON number (int when integral)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def floor_at_zero(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def to_int(value: Any, field: str = "quantity") -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Whole floats arrive from JSON clients as 3.0
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str = "quantity") -> int:
    result = to_int(value, field)
    if result <= 0:
        raise ValidationError(f"{field} must be positive")
    return result


def _coerce_value(key: str, kind: str, value: Any):
    if value is None:
        return None

    if kind == FIELD_INT:
        return to_int(value, key)

    if kind == FIELD_MONEY:
        amount = to_money(value, key)
        if abs(amount) > MAX_MONEY:
            raise ValidationError(f"{key} exceeds maximum allowed amount")
        return amount

    if kind == FIELD_BOOL:
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Strings / Text
    return str(value).strip()


def validate_payload(
    *,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - a policy allowlist (writable_fields)
    - the declared kind of each field
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: update semantics (only validate provided fields)
    """
    if not isinstance(payload, dict):
        raise ValidationError("JSON body must be an object")

    unknown = set(payload.keys()) - policy.writable_fields
    if unknown:
        raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")

    required = policy.required_on_create or set()
    if not partial:
        missing = [f for f in sorted(required) if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned: dict = {}
    for key, value in payload.items():
        kind = policy.field_types.get(key, FIELD_TEXT)
        coerced = _coerce_value(key, kind, value)
        if coerced is None and key in required:
            raise ValidationError(f"{key} cannot be null")
        if policy.choices and key in policy.choices and coerced is not None:
            allowed = policy.choices[key]
            if coerced not in allowed:
                raise ValidationError(f"{key} must be one of {', '.join(allowed)}")
        cleaned[key] = coerced

    return cleaned
