from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .base import text, optional_text, money, integer, number, compact


@dataclass
class Customer:
    """Customer keyed by phone number, carrying debt and loyalty balances."""
    id: str
    name: str
    phone: str
    debt_balance: Decimal = Decimal("0")
    loyalty_points: int = 0
    history: list[str] = field(default_factory=list)
    photo: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Customer":
        return cls(
            id=text(raw, "id"),
            name=text(raw, "name"),
            phone=text(raw, "phone"),
            debt_balance=money(raw, "debtBalance"),
            loyalty_points=integer(raw, "loyaltyPoints"),
            history=[str(tx_id) for tx_id in (raw.get("history") or [])],
            photo=optional_text(raw, "photo"),
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "photo": self.photo,
            "debtBalance": number(self.debt_balance),
            "loyaltyPoints": self.loyalty_points,
            "history": list(self.history),
        })


@dataclass
class Supplier:
    id: str
    name: str
    contact: str = ""
    phone: str = ""
    balance: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, raw: dict) -> "Supplier":
        return cls(
            id=text(raw, "id"),
            name=text(raw, "name"),
            contact=text(raw, "contact"),
            phone=text(raw, "phone"),
            balance=money(raw, "balance"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "phone": self.phone,
            "balance": number(self.balance),
        }
