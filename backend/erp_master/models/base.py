# Overview: Shared coercion helpers for document records read back from JSON.

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..validation import to_money, to_int, as_number


def text(raw: dict, key: str, default: str = "") -> str:
    value = raw.get(key)
    if value is None:
        return default
    return str(value)


def optional_text(raw: dict, key: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return str(value)


def money(raw: dict, key: str) -> Decimal:
    return to_money(raw.get(key), key)


def integer(raw: dict, key: str, default: int = 0) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return default
    return to_int(value, key)


def number(value: Decimal) -> int | float:
    return as_number(value)


def compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so optional fields stay absent on the wire."""
    return {k: v for k, v in data.items() if v is not None}
