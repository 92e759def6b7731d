from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .base import text, optional_text, money, integer, number, compact
from .accounts import (
    INVENTORY_ACCOUNT_NAME,
    LOSS_DAMAGED_ACCOUNT_NAME,
    LOSS_LOST_ACCOUNT_NAME,
    LOSS_EXPIRED_ACCOUNT_NAME,
)


ADJUSTMENT_DAMAGE = "DAMAGE"
ADJUSTMENT_LOST = "LOST"
ADJUSTMENT_EXPIRED = "EXPIRED"
ADJUSTMENT_RETURN_TO_VENDOR = "RETURN_TO_VENDOR"
ADJUSTMENT_STOCK_IN = "STOCK_IN"

LOSS_ADJUSTMENT_TYPES = (
    ADJUSTMENT_DAMAGE,
    ADJUSTMENT_LOST,
    ADJUSTMENT_EXPIRED,
    ADJUSTMENT_RETURN_TO_VENDOR,
)

VALID_ADJUSTMENT_TYPES = LOSS_ADJUSTMENT_TYPES + (ADJUSTMENT_STOCK_IN,)

# RETURN_TO_VENDOR has no loss account of its own and lands back on inventory
LOSS_ACCOUNT_BY_TYPE = {
    ADJUSTMENT_DAMAGE: LOSS_DAMAGED_ACCOUNT_NAME,
    ADJUSTMENT_LOST: LOSS_LOST_ACCOUNT_NAME,
    ADJUSTMENT_EXPIRED: LOSS_EXPIRED_ACCOUNT_NAME,
}


def loss_account_name(adjustment_type: str) -> str:
    return LOSS_ACCOUNT_BY_TYPE.get(adjustment_type, INVENTORY_ACCOUNT_NAME)


@dataclass
class StockAdjustment:
    id: str
    product_id: str
    product_name: str
    type: str
    quantity: int
    timestamp: int
    reason: str = ""
    supplier_id: str | None = None
    # Unit cost at the moment of the adjustment; absent on records written before it was captured
    unit_cost: Decimal | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "StockAdjustment":
        return cls(
            id=text(raw, "id"),
            product_id=text(raw, "productId"),
            product_name=text(raw, "productName"),
            type=text(raw, "type"),
            quantity=integer(raw, "quantity"),
            timestamp=integer(raw, "timestamp"),
            reason=text(raw, "reason"),
            supplier_id=optional_text(raw, "supplierId"),
            unit_cost=money(raw, "unitCost") if raw.get("unitCost") is not None else None,
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "timestamp": self.timestamp,
            "reason": self.reason,
            "supplierId": self.supplier_id,
            "unitCost": number(self.unit_cost) if self.unit_cost is not None else None,
        })

    @property
    def is_loss(self) -> bool:
        return self.type in LOSS_ADJUSTMENT_TYPES
