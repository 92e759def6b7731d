from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .base import text, optional_text, money, integer, number, compact
from .sales import CURRENCY_USD


DEFAULT_EXPENSE_CATEGORY = "General"


@dataclass
class Expense:
    id: str
    category: str
    description: str
    amount: Decimal
    currency: str
    timestamp: int
    account_id: str
    receipt: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Expense":
        return cls(
            id=text(raw, "id"),
            category=text(raw, "category", DEFAULT_EXPENSE_CATEGORY),
            description=text(raw, "description"),
            amount=money(raw, "amount"),
            currency=text(raw, "currency", CURRENCY_USD),
            timestamp=integer(raw, "timestamp"),
            account_id=text(raw, "accountId"),
            receipt=optional_text(raw, "receipt"),
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "amount": number(self.amount),
            "currency": self.currency,
            "timestamp": self.timestamp,
            "accountId": self.account_id,
            "receipt": self.receipt,
        })
