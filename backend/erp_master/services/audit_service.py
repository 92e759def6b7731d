# Overview: Service-layer operations for the audit trail carried in the document.

from __future__ import annotations

from decimal import Decimal

from ..models import AppData, AuditLog, AUDIT_DISPLAY_LIMIT, CURRENCY_ETB
from ..time_utils import now_ms
from .identifier_service import generate_id
"""
Audit trail invariants

- Entries are prepended: index 0 is always the most recent.
- Entries are never edited or removed by business handlers.
- The acting user is whoever settings.currentUser names at commit time.
"""


def append_audit_log(document: AppData, action: str, details: str) -> AuditLog:
    """
    Prepend an audit entry to a draft document.

    Called by handlers on the clone they are building, so the entry commits
    together with the business change it describes.
    """
    entry = AuditLog(
        id=generate_id(),
        action=action,
        details=details,
        timestamp=now_ms(),
        user=document.settings.current_user.name,
    )
    document.audit_logs.insert(0, entry)
    return entry


def recent_audit_logs(document: AppData, limit: int | None = AUDIT_DISPLAY_LIMIT) -> list[AuditLog]:
    if limit is None:
        return list(document.audit_logs)
    return document.audit_logs[:max(limit, 0)]


def format_amount(amount: Decimal, currency: str, rate: Decimal = Decimal("1")) -> str:
    """Human-readable amount for audit text; ETB amounts are converted at the stored rate."""
    value = amount * rate if currency == CURRENCY_ETB else amount
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(value):,.2f}"
