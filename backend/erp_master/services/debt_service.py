# Overview: Service-layer operations for collecting customer debt.

from __future__ import annotations

from decimal import Decimal

from ..models import AppData, Customer, Transaction, IMMEDIATE_PAYMENT_METHODS, PAYMENT_CASH, TX_DEBT_PAYMENT
from ..time_utils import now_ms
from ..validation import to_money, floor_at_zero, ZERO
from . import posting_rules
from .audit_service import append_audit_log, format_amount
from .identifier_service import generate_id


class DebtPaymentError(Exception):
    """Raised for debt payment errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def receive_debt_payment(
    document: AppData,
    customer_id: str,
    amount,
    account_id: str | None,
    payment_method: str = PAYMENT_CASH,
    *,
    currency: str | None = None,
) -> tuple[AppData, Transaction]:
    """
    Record money received against a customer's debt.

    Creates a DEBT_PAYMENT transaction for the amount, lowers the customer's
    debt (floored at zero), links the transaction into their history and
    credits the deposit account.

    Raises:
        DebtPaymentError: Unknown customer, no deposit account, amount not in
            (0, debtBalance], or a non-immediate payment method
    """
    customer = document.find_customer(customer_id)
    if customer is None:
        raise DebtPaymentError("Customer not found", details={"customer_id": customer_id})

    if not account_id:
        raise DebtPaymentError("Please select an account to deposit this payment into.")
    if document.find_account(account_id) is None:
        raise DebtPaymentError("Deposit account not found", details={"account_id": account_id})

    if payment_method not in IMMEDIATE_PAYMENT_METHODS:
        raise DebtPaymentError(
            f"Payment method must be one of {', '.join(IMMEDIATE_PAYMENT_METHODS)}",
            details={"payment_method": payment_method},
        )

    try:
        value = to_money(amount, "amount")
    except ValueError:
        raise DebtPaymentError("Please enter a valid amount")
    if value <= ZERO:
        raise DebtPaymentError("Please enter a valid amount")
    if value > customer.debt_balance:
        raise DebtPaymentError(
            "Payment amount cannot exceed balance",
            details={"debt_balance": str(customer.debt_balance), "amount": str(value)},
        )

    draft = document.clone()
    settings = draft.settings
    currency = currency or settings.default_currency

    transaction = Transaction(
        id=generate_id(),
        items=[],
        subtotal=value,
        tax=Decimal("0"),
        total=value,
        currency=currency,
        exchange_rate=settings.exchange_rate,
        payment_method=payment_method,
        timestamp=now_ms(),
        type=TX_DEBT_PAYMENT,
        account_id=account_id,
        customer_id=customer_id,
    )

    payer = draft.find_customer(customer_id)
    payer.debt_balance = floor_at_zero(payer.debt_balance - value)
    payer.history.append(transaction.id)

    posting_rules.post(draft, posting_rules.EVENT_DEBT_PAYMENT, value, target_account_id=account_id)
    draft.transactions.append(transaction)

    account = draft.find_account(account_id)
    append_audit_log(
        draft,
        "Debt Payment",
        f"Received {format_amount(value, currency, settings.exchange_rate)} from {payer.name} "
        f"via {payment_method}. Deposited to {account.name}",
    )
    return draft, transaction


def list_debtors(document: AppData) -> list[Customer]:
    """Customers who still owe money, largest balance first."""
    debtors = [c for c in document.customers if c.debt_balance > ZERO]
    return sorted(debtors, key=lambda c: c.debt_balance, reverse=True)
