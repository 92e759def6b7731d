# Overview: Service-layer operations for checkout and invoice reversal.

"""
Sales Service

Checkout and invoice deletion are the two handlers that move stock, money and
customer debt together for a sale.

DESIGN PRINCIPLES:
- Handlers take a committed document and return (new_document, result).
  The committed document is never mutated; all changes land on a clone.
- Every guard runs before the clone is touched, so a raised SaleError
  leaves nothing half-applied.
- Account movements go through posting_rules.post().
- Deletion reverses only from fields stored on the Transaction; no separate
  journal of deltas exists.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR

from ..models import (
    AppData,
    CartItem,
    Transaction,
    PaymentDetails,
    FullSettlement,
    CreditSettlement,
    SplitSettlement,
    Settlement,
    IMMEDIATE_PAYMENT_METHODS,
    VALID_PAYMENT_METHODS,
    VALID_CURRENCIES,
    PAYMENT_DEBT,
    PAYMENT_PARTIAL,
    TX_SALE,
    TX_DEBT_PAYMENT,
)
from ..time_utils import now_ms
from ..validation import ValidationError, NotFoundError, to_money, require_positive_int, floor_at_zero, ZERO
from . import posting_rules
from .audit_service import append_audit_log, format_amount
from .identifier_service import generate_id, short_ref


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def loyalty_points_for(total: Decimal) -> int:
    """One point per whole currency unit of the sale total."""
    if total <= ZERO:
        return 0
    return int(total.to_integral_value(rounding=ROUND_FLOOR))


# =============================================================================
# SETTLEMENT PARSING
# =============================================================================

def settlement_from_payload(payload: dict) -> Settlement:
    """
    Build a settlement variant from checkout JSON.

    Expected keys:
        paymentMethod: Cash | Bank Transfer | Mobile Money | Debt | Partial Payment
        accountId: deposit account (may be omitted for Debt)
        paymentDetails: {cash, bank, mobile} (Partial Payment only)
    """
    method = payload.get("paymentMethod")
    if method not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"paymentMethod must be one of {', '.join(VALID_PAYMENT_METHODS)}")

    account_id = payload.get("accountId") or None

    if method == PAYMENT_DEBT:
        return CreditSettlement(account_id=account_id)

    if method == PAYMENT_PARTIAL:
        details = payload.get("paymentDetails") or {}
        if not isinstance(details, dict):
            raise ValidationError("paymentDetails must be an object")
        parts = {}
        for key in ("cash", "bank", "mobile"):
            amount = to_money(details.get(key), f"paymentDetails.{key}")
            if amount < ZERO:
                raise ValidationError(f"paymentDetails.{key} cannot be negative")
            parts[key] = amount
        return SplitSettlement(account_id=account_id or "", **parts)

    return FullSettlement(method=method, account_id=account_id or "")


# =============================================================================
# CHECKOUT
# =============================================================================

def _merge_cart(cart) -> list[tuple[str, int]]:
    merged: dict[str, int] = {}
    for product_id, quantity in cart:
        qty = require_positive_int(quantity, "quantity")
        merged[product_id] = merged.get(product_id, 0) + qty
    return list(merged.items())


def record_sale(
    document: AppData,
    cart,
    settlement: Settlement,
    *,
    customer_id: str | None = None,
    currency: str | None = None,
) -> tuple[AppData, Transaction | None]:
    """
    Check out a cart.

    Args:
        document: Committed document
        cart: Iterable of (product_id, quantity) pairs
        settlement: How the total is paid
        customer_id: Customer to attach (required for Debt and Partial Payment)
        currency: Display currency recorded on the sale (defaults to settings)

    Returns:
        (new_document, transaction). An empty cart is a no-op and returns the
        same document with no transaction.

    Raises:
        SaleError: Missing deposit account, missing customer, unknown product
    """
    lines = _merge_cart(cart)
    if not lines:
        return document, None

    if not isinstance(settlement, CreditSettlement) and not settlement.account_id:
        raise SaleError("Please select a deposit account for this transaction.")

    if isinstance(settlement, (CreditSettlement, SplitSettlement)) and not customer_id:
        raise SaleError("Debt or Partial payment requires a selected customer profile.")

    if settlement.account_id and document.find_account(settlement.account_id) is None:
        raise SaleError(
            "Deposit account not found",
            details={"account_id": settlement.account_id},
        )

    if customer_id and document.find_customer(customer_id) is None:
        raise SaleError("Customer not found", details={"customer_id": customer_id})

    missing = [pid for pid, _ in lines if document.find_product(pid) is None]
    if missing:
        raise SaleError("Product not found", details={"product_ids": missing})

    currency = currency or document.settings.default_currency
    if currency not in VALID_CURRENCIES:
        raise ValidationError(f"currency must be one of {', '.join(VALID_CURRENCIES)}")

    draft = document.clone()
    settings = draft.settings

    items = [CartItem.snapshot(draft.find_product(pid), qty) for pid, qty in lines]
    subtotal = sum((item.line_total for item in items), ZERO)
    tax = subtotal * settings.tax_rate / Decimal("100")
    total = subtotal + tax

    # No floor: the register only offers what is on hand
    for item in items:
        draft.find_product(item.id).stock -= item.quantity

    deposit = settlement.deposit_amount(total)
    debt = settlement.debt_amount(total)

    transaction = Transaction(
        id=generate_id(),
        items=items,
        subtotal=subtotal,
        tax=tax,
        total=total,
        currency=currency,
        exchange_rate=settings.exchange_rate,
        payment_method=settlement.payment_method,
        timestamp=now_ms(),
        type=TX_SALE,
        account_id=settlement.account_id or None,
        payment_details=(
            PaymentDetails(cash=settlement.cash, bank=settlement.bank, mobile=settlement.mobile, debt=debt)
            if isinstance(settlement, SplitSettlement) else None
        ),
        customer_id=customer_id,
    )

    if deposit != ZERO:
        posting_rules.post(draft, posting_rules.EVENT_SALE, deposit, target_account_id=settlement.account_id)

    if customer_id:
        customer = draft.find_customer(customer_id)
        customer.debt_balance += debt
        customer.loyalty_points += loyalty_points_for(total)
        customer.history.append(transaction.id)

    draft.transactions.append(transaction)

    account = draft.find_account(settlement.account_id) if settlement.account_id else None
    append_audit_log(
        draft,
        "POS Transaction",
        f"Sale #{short_ref(transaction.id)} processed. "
        f"Income: {format_amount(deposit, currency, settings.exchange_rate)} to {account.name if account else 'N/A'}",
    )
    return draft, transaction


# =============================================================================
# INVOICE DELETION / REVERSAL
# =============================================================================

def _reverse_sale(draft: AppData, transaction: Transaction) -> None:
    restored: dict[str, int] = {}
    for item in transaction.items:
        restored[item.id] = restored.get(item.id, 0) + item.quantity
    for product_id, quantity in restored.items():
        product = draft.find_product(product_id)
        if product is not None:
            product.stock += quantity

    if transaction.account_id:
        posting_rules.post(
            draft,
            posting_rules.EVENT_SALE_REVERSAL,
            transaction.amount_received,
            target_account_id=transaction.account_id,
        )

    customer = draft.find_customer(transaction.customer_id) if transaction.customer_id else None
    if customer is not None:
        customer.debt_balance = floor_at_zero(customer.debt_balance - transaction.debt_incurred)
        customer.loyalty_points = max(0, customer.loyalty_points - loyalty_points_for(transaction.total))
        customer.history = [tx_id for tx_id in customer.history if tx_id != transaction.id]


def _reverse_debt_payment(draft: AppData, transaction: Transaction) -> None:
    if transaction.account_id:
        posting_rules.post(
            draft,
            posting_rules.EVENT_DEBT_PAYMENT_REVERSAL,
            transaction.total,
            target_account_id=transaction.account_id,
        )

    customer = draft.find_customer(transaction.customer_id) if transaction.customer_id else None
    if customer is not None:
        customer.debt_balance += transaction.total
        customer.history = [tx_id for tx_id in customer.history if tx_id != transaction.id]


def delete_invoice(document: AppData, transaction_id: str) -> tuple[AppData, Transaction]:
    """
    Delete a transaction and undo what recording it did.

    Sales restore stock, debit the amount received from the recorded account
    (floored at zero) and take back the customer's debt and loyalty points.
    Debt payments debit the deposit account and put the debt back on the
    customer.

    Raises:
        NotFoundError: No transaction with that id
    """
    if document.find_transaction(transaction_id) is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")

    draft = document.clone()
    transaction = draft.find_transaction(transaction_id)

    if transaction.type == TX_DEBT_PAYMENT:
        _reverse_debt_payment(draft, transaction)
    else:
        _reverse_sale(draft, transaction)

    draft.transactions = [t for t in draft.transactions if t.id != transaction_id]

    append_audit_log(draft, "Invoice Deleted", f"Invoice #{transaction.invoice_number} deleted.")
    return draft, transaction


def list_transactions(document: AppData, *, transaction_type: str | None = None) -> list[Transaction]:
    """Transactions newest first, optionally filtered by type."""
    rows = [t for t in document.transactions if transaction_type is None or t.type == transaction_type]
    return sorted(rows, key=lambda t: t.timestamp, reverse=True)
