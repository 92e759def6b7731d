# Overview: Service-layer helpers for record identifiers.

from __future__ import annotations

import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(length: int = 9) -> str:
    """Short random base-36 identifier used for every document record."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def short_ref(record_id: str) -> str:
    """Last five characters, the reference shown in audit entries (e.g. Sale #k3x9q)."""
    return record_id[-5:]
