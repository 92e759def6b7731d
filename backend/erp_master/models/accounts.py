from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .base import text, money, number


ACCOUNT_TYPE_ASSET = "Asset"
ACCOUNT_TYPE_FIXED_ASSET = "Fixed Asset"
ACCOUNT_TYPE_EQUITY = "Equity"
ACCOUNT_TYPE_OTHER_CURRENT_ASSET = "Other Current Asset"
ACCOUNT_TYPE_LIABILITY = "Liability"

VALID_ACCOUNT_TYPES = (
    ACCOUNT_TYPE_ASSET,
    ACCOUNT_TYPE_FIXED_ASSET,
    ACCOUNT_TYPE_EQUITY,
    ACCOUNT_TYPE_OTHER_CURRENT_ASSET,
    ACCOUNT_TYPE_LIABILITY,
)

ASSET_ACCOUNT_TYPES = (
    ACCOUNT_TYPE_ASSET,
    ACCOUNT_TYPE_OTHER_CURRENT_ASSET,
    ACCOUNT_TYPE_FIXED_ASSET,
)

INVENTORY_ACCOUNT_ID = "acc-inv"
INVENTORY_ACCOUNT_NAME = "Inventory Asset"

LOSS_DAMAGED_ACCOUNT_NAME = "Loss - Damaged Items"
LOSS_LOST_ACCOUNT_NAME = "Loss - Lost Items"
LOSS_EXPIRED_ACCOUNT_NAME = "Loss - Expired Items"


@dataclass
class Account:
    """A named running balance. Balances move only through posting rules."""
    id: str
    name: str
    type: str
    balance: Decimal

    @classmethod
    def from_dict(cls, raw: dict) -> "Account":
        return cls(
            id=text(raw, "id"),
            name=text(raw, "name"),
            type=text(raw, "type", ACCOUNT_TYPE_ASSET),
            balance=money(raw, "balance"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "balance": number(self.balance),
        }


def default_accounts() -> list[Account]:
    """Chart of accounts seeded on first run."""
    zero = Decimal("0")
    return [
        Account(id="acc-cash", name="Cash Account", type=ACCOUNT_TYPE_ASSET, balance=zero),
        Account(id="acc-bank", name="Bank Account", type=ACCOUNT_TYPE_ASSET, balance=zero),
        Account(id="acc-mobile", name="Mobile Account", type=ACCOUNT_TYPE_ASSET, balance=zero),
        Account(id=INVENTORY_ACCOUNT_ID, name=INVENTORY_ACCOUNT_NAME, type=ACCOUNT_TYPE_ASSET, balance=zero),
        Account(id="acc-4", name=LOSS_DAMAGED_ACCOUNT_NAME, type=ACCOUNT_TYPE_LIABILITY, balance=zero),
        Account(id="acc-5", name=LOSS_LOST_ACCOUNT_NAME, type=ACCOUNT_TYPE_LIABILITY, balance=zero),
        Account(id="acc-6", name=LOSS_EXPIRED_ACCOUNT_NAME, type=ACCOUNT_TYPE_LIABILITY, balance=zero),
    ]
