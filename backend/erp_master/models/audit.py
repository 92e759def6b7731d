from __future__ import annotations

from dataclasses import dataclass

from .base import text, integer


AUDIT_DISPLAY_LIMIT = 50


@dataclass
class AuditLog:
    """Append-only audit entry; the document keeps these most-recent-first."""
    id: str
    action: str
    details: str
    timestamp: int
    user: str

    @classmethod
    def from_dict(cls, raw: dict) -> "AuditLog":
        return cls(
            id=text(raw, "id"),
            action=text(raw, "action"),
            details=text(raw, "details"),
            timestamp=integer(raw, "timestamp"),
            user=text(raw, "user"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp,
            "user": self.user,
        }
