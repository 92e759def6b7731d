# Overview: Service-layer operations for stock purchases, loss adjustments and their reversal.

"""
Inventory Service

Stock quantities change here (outside of sales) and always together with the
ledger accounts that value them.

- stock_in: a purchase paid in full from one account (last-cost pricing).
- record_stock_loss: damaged, lost, expired or returned units written off
  from "Inventory Asset" into the loss account for the adjustment type.
- reverse_stock_adjustment: puts written-off units back and reverses the
  valuation, at the current or the recorded unit cost depending on config.

Adjustments are kept most-recent-first in the document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..config import FUNDS_POLICY_BLOCK, VALID_FUNDS_POLICIES, COST_BASIS_RECORDED, VALID_COST_BASES
from ..models import (
    AppData,
    StockAdjustment,
    ADJUSTMENT_STOCK_IN,
    LOSS_ADJUSTMENT_TYPES,
    INVENTORY_ACCOUNT_NAME,
    loss_account_name,
)
from ..time_utils import now_ms
from ..validation import to_money, require_positive_int, ZERO
from . import posting_rules
from .audit_service import append_audit_log, format_amount
from .identifier_service import generate_id


logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Raised for inventory operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class PurchaseReceipt:
    adjustment: StockAdjustment
    total_cost: Decimal
    insufficient_funds: bool


# =============================================================================
# PURCHASE / STOCK-IN
# =============================================================================

def stock_in(
    document: AppData,
    product_id: str,
    quantity,
    unit_cost,
    account_id: str | None,
    *,
    supplier_id: str | None = None,
    supplier_name: str | None = None,
    funds_policy: str = FUNDS_POLICY_BLOCK,
) -> tuple[AppData, PurchaseReceipt]:
    """
    Receive purchased stock, paid in full from a funding account.

    Args:
        product_id: Product being replenished
        quantity: Units received (positive integer)
        unit_cost: Cost per unit; when > 0 it becomes the product's cost price
        account_id: Account the purchase is paid from
        supplier_id: Optional supplier reference stored on the adjustment
        supplier_name: Free-text supplier when no supplier record is used
        funds_policy: "block" rejects a purchase the account cannot cover,
            "warn" records it and flags insufficient_funds on the receipt

    Raises:
        InventoryError: Unknown product/account/supplier, no funding account,
            or insufficient funds under the block policy
    """
    if funds_policy not in VALID_FUNDS_POLICIES:
        raise InventoryError(f"Unknown funds policy: {funds_policy}")

    product = document.find_product(product_id)
    if product is None:
        raise InventoryError("Please select a product and enter a valid quantity.", details={"product_id": product_id})

    qty = require_positive_int(quantity, "quantity")
    cost = to_money(unit_cost, "unit_cost")
    if cost < ZERO:
        raise InventoryError("Unit cost cannot be negative")

    if not account_id:
        raise InventoryError("Please select a payment account to deduct the cost from.")
    account = document.find_account(account_id)
    if account is None:
        raise InventoryError("Payment account not found", details={"account_id": account_id})

    supplier = None
    if supplier_id:
        supplier = document.find_supplier(supplier_id)
        if supplier is None:
            raise InventoryError("Supplier not found", details={"supplier_id": supplier_id})

    total_cost = cost * qty
    insufficient = account.balance < total_cost
    if insufficient:
        if funds_policy == FUNDS_POLICY_BLOCK:
            raise InventoryError(
                "Insufficient funds in the selected account to complete this purchase.",
                details={"balance": str(account.balance), "required": str(total_cost)},
            )
        logger.warning(
            "Purchase of %s exceeds balance of %s (%s < %s)",
            product.name, account.name, account.balance, total_cost,
        )

    draft = document.clone()
    item = draft.find_product(product_id)
    old_stock = item.stock
    item.stock = old_stock + qty
    if cost > ZERO:
        item.cost_price = cost

    posting_rules.post(draft, posting_rules.EVENT_STOCK_IN, total_cost, target_account_id=account_id)

    source = supplier.name if supplier else (supplier_name or "General Supplier")
    adjustment = StockAdjustment(
        id=generate_id(),
        product_id=item.id,
        product_name=item.name,
        type=ADJUSTMENT_STOCK_IN,
        quantity=qty,
        timestamp=now_ms(),
        reason=f"Purchased from {source}. Source: {account.name}. Old Stock: {old_stock}, New: {item.stock}",
        supplier_id=supplier_id,
        unit_cost=cost,
    )
    draft.stock_adjustments.insert(0, adjustment)

    settings = draft.settings
    append_audit_log(
        draft,
        "Inventory Purchase",
        f"Bought {item.name}: +{qty} from {source}. "
        f"Deducted {format_amount(total_cost, settings.default_currency, settings.exchange_rate)} from {account.name}",
    )
    return draft, PurchaseReceipt(adjustment=adjustment, total_cost=total_cost, insufficient_funds=insufficient)


# =============================================================================
# STOCK-LOSS ADJUSTMENTS
# =============================================================================

def _post_loss(draft: AppData, event_type: str, value: Decimal, adjustment_type: str) -> None:
    loss_account = loss_account_name(adjustment_type)
    # Returns to vendor value back onto inventory itself; the two lines cancel
    if loss_account == INVENTORY_ACCOUNT_NAME:
        return
    posting_rules.post(draft, event_type, value, loss_account=loss_account)


def record_stock_loss(
    document: AppData,
    product_id: str,
    quantity,
    adjustment_type: str,
    reason: str = "",
) -> tuple[AppData, StockAdjustment]:
    """
    Write off units of a product.

    Loss value is the product's cost price times quantity. Stock and the
    "Inventory Asset" balance are floored at zero; the loss account for the
    type is credited with the full value.

    Raises:
        InventoryError: Unknown product, non-loss type or bad quantity
    """
    if adjustment_type not in LOSS_ADJUSTMENT_TYPES:
        raise InventoryError(
            f"Adjustment type must be one of {', '.join(LOSS_ADJUSTMENT_TYPES)}",
            details={"type": adjustment_type},
        )
    if document.find_product(product_id) is None:
        raise InventoryError("Please select a product and quantity.", details={"product_id": product_id})
    qty = require_positive_int(quantity, "quantity")

    draft = document.clone()
    product = draft.find_product(product_id)
    loss_value = product.cost_price * qty

    product.stock = max(0, product.stock - qty)
    _post_loss(draft, posting_rules.EVENT_STOCK_LOSS, loss_value, adjustment_type)

    adjustment = StockAdjustment(
        id=generate_id(),
        product_id=product.id,
        product_name=product.name,
        type=adjustment_type,
        quantity=qty,
        timestamp=now_ms(),
        reason=(reason or "").strip(),
        unit_cost=product.cost_price,
    )
    draft.stock_adjustments.insert(0, adjustment)

    settings = draft.settings
    append_audit_log(
        draft,
        "Stock Adjustment",
        f"Adjusted {product.name} (-{qty}) due to {adjustment_type}. "
        f"Loss value: {format_amount(loss_value, settings.default_currency, settings.exchange_rate)} "
        f"recorded in {loss_account_name(adjustment_type)}",
    )
    return draft, adjustment


def reversal_value(document: AppData, adjustment: StockAdjustment, cost_basis: str) -> Decimal:
    """
    Valuation used to undo a loss adjustment.

    "current" re-reads the product's cost price today, so a cost change since
    the adjustment makes the reversal differ from the original loss.
    "recorded" uses the unit cost captured on the adjustment, falling back to
    the current cost for adjustments written before it was captured.
    """
    product = document.find_product(adjustment.product_id)
    current = product.cost_price if product is not None else ZERO
    if cost_basis == COST_BASIS_RECORDED and adjustment.unit_cost is not None:
        return adjustment.unit_cost * adjustment.quantity
    return current * adjustment.quantity


def reverse_stock_adjustment(
    document: AppData,
    adjustment_id: str,
    *,
    cost_basis: str,
) -> tuple[AppData, StockAdjustment]:
    """
    Delete a loss adjustment and put its units back.

    Raises:
        InventoryError: Unknown adjustment, purchase adjustments, unknown basis
    """
    if cost_basis not in VALID_COST_BASES:
        raise InventoryError(f"Unknown cost basis: {cost_basis}")

    adjustment = document.find_adjustment(adjustment_id)
    if adjustment is None:
        raise InventoryError("Adjustment not found", details={"adjustment_id": adjustment_id})
    if not adjustment.is_loss:
        raise InventoryError(
            "Purchase records cannot be reversed here",
            details={"adjustment_id": adjustment_id, "type": adjustment.type},
        )

    draft = document.clone()
    value = reversal_value(draft, adjustment, cost_basis)

    product = draft.find_product(adjustment.product_id)
    if product is not None:
        product.stock += adjustment.quantity

    _post_loss(draft, posting_rules.EVENT_STOCK_LOSS_REVERSAL, value, adjustment.type)
    draft.stock_adjustments = [a for a in draft.stock_adjustments if a.id != adjustment_id]

    append_audit_log(
        draft,
        "Adjustment Reverted",
        f"Adjustment for {adjustment.product_name} was deleted. Stock restored.",
    )
    return draft, adjustment


def list_adjustments(document: AppData, *, adjustment_type: str | None = None) -> list[StockAdjustment]:
    return [a for a in document.stock_adjustments if adjustment_type is None or a.type == adjustment_type]
