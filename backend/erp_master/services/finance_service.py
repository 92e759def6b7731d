# Overview: Service-layer operations for expenses and the chart of accounts.

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import (
    AppData,
    Account,
    Expense,
    DEFAULT_EXPENSE_CATEGORY,
    VALID_ACCOUNT_TYPES,
    VALID_CURRENCIES,
    ACCOUNT_TYPE_ASSET,
)
from ..time_utils import now_ms
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    NotFoundError,
    FIELD_MONEY,
    FIELD_TEXT,
    ZERO,
)
from . import posting_rules
from .audit_service import append_audit_log, format_amount
from .identifier_service import generate_id


logger = logging.getLogger(__name__)


class FinanceError(Exception):
    """Raised for expense and account errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


EXPENSE_POLICY = ModelValidationPolicy(
    field_types={
        "category": FIELD_TEXT,
        "description": FIELD_TEXT,
        "amount": FIELD_MONEY,
        "currency": FIELD_TEXT,
        "accountId": FIELD_TEXT,
        "receipt": FIELD_TEXT,
    },
    writable_fields={"category", "description", "amount", "currency", "accountId", "receipt"},
    choices={"currency": VALID_CURRENCIES},
)

ACCOUNT_POLICY = ModelValidationPolicy(
    field_types={"name": FIELD_TEXT, "type": FIELD_TEXT, "balance": FIELD_MONEY},
    writable_fields={"name", "type", "balance"},
    required_on_create={"name"},
    choices={"type": VALID_ACCOUNT_TYPES},
)


@dataclass(frozen=True)
class ExpenseReceipt:
    expense: Expense
    insufficient_funds: bool


@dataclass(frozen=True)
class AccountRemoval:
    account: Account
    # A nonzero balance leaves the balance sheet out of balance by this amount
    imbalance_warning: bool


# =============================================================================
# EXPENSES
# =============================================================================

def add_expense(document: AppData, payload: dict) -> tuple[AppData, ExpenseReceipt]:
    """
    Record an expense paid from a funding account.

    An account that cannot cover the amount only produces a warning flag;
    the expense is recorded and the balance may go negative.

    Raises:
        FinanceError: Missing description, amount or funding account
    """
    data = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=True)

    description = data.get("description") or ""
    amount = data.get("amount")
    account_id = data.get("accountId") or ""
    if not description or amount is None or amount == ZERO or not account_id:
        raise FinanceError("Description, Amount, and Funding Account are all required.")
    if amount < ZERO:
        raise FinanceError("Expense amount must be positive")

    account = document.find_account(account_id)
    if account is None:
        raise FinanceError("Funding account not found", details={"account_id": account_id})

    insufficient = account.balance < amount
    if insufficient:
        logger.warning("Expense %r exceeds balance of %s", description, account.name)

    draft = document.clone()
    settings = draft.settings
    expense = Expense(
        id=generate_id(),
        category=data.get("category") or DEFAULT_EXPENSE_CATEGORY,
        description=description,
        amount=amount,
        currency=data.get("currency") or settings.default_currency,
        timestamp=now_ms(),
        account_id=account_id,
        receipt=data.get("receipt") or None,
    )
    draft.expenses.insert(0, expense)
    posting_rules.post(draft, posting_rules.EVENT_EXPENSE, amount, target_account_id=account_id)

    append_audit_log(
        draft,
        "Add Expense",
        f"Recorded expense: {description}. "
        f"Deducted {format_amount(amount, settings.default_currency, settings.exchange_rate)} from {account.name}",
    )
    return draft, ExpenseReceipt(expense=expense, insufficient_funds=insufficient)


def delete_expense(document: AppData, expense_id: str) -> tuple[AppData, Expense]:
    """Remove an expense and refund its amount to the funding account."""
    if document.find_expense(expense_id) is None:
        raise NotFoundError(f"Expense {expense_id} not found")

    draft = document.clone()
    expense = draft.find_expense(expense_id)
    draft.expenses = [e for e in draft.expenses if e.id != expense_id]
    posting_rules.post(draft, posting_rules.EVENT_EXPENSE_REFUND, expense.amount, target_account_id=expense.account_id)

    append_audit_log(
        draft,
        "Delete Expense",
        f"Removed expense: {expense.description}. Refunded {expense.amount} to account.",
    )
    return draft, expense


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

def create_account(document: AppData, payload: dict) -> tuple[AppData, Account]:
    data = validate_payload(payload=payload, policy=ACCOUNT_POLICY, partial=False)
    if not data["name"]:
        raise FinanceError("Account name is required")

    draft = document.clone()
    account = Account(
        id=generate_id(),
        name=data["name"],
        type=data.get("type") or ACCOUNT_TYPE_ASSET,
        balance=data.get("balance") or ZERO,
    )
    draft.accounts.append(account)
    append_audit_log(draft, "Account Created", f"New ledger account added: {account.name}")
    return draft, account


def update_account(document: AppData, account_id: str, payload: dict) -> tuple[AppData, Account]:
    """
    Edit an account's name, type or balance.

    Setting a balance directly is a manual correction; it bypasses posting
    rules the same way opening balances do.
    """
    if document.find_account(account_id) is None:
        raise NotFoundError(f"Account {account_id} not found")
    data = validate_payload(payload=payload, policy=ACCOUNT_POLICY, partial=True)
    if "name" in data and not data["name"]:
        raise FinanceError("Account name is required")

    draft = document.clone()
    account = draft.find_account(account_id)
    for key, value in data.items():
        if value is not None:
            setattr(account, key, value)
    append_audit_log(draft, "Account Updated", f"Updated ledger account: {account.name}")
    return draft, account


def delete_account(document: AppData, account_id: str) -> tuple[AppData, AccountRemoval]:
    """
    Delete an account.

    Deleting an account that still holds a balance is allowed; the removal is
    flagged so callers can report the resulting balance-sheet imbalance.
    """
    account = document.find_account(account_id)
    if account is None:
        raise NotFoundError(f"Account {account_id} not found")

    draft = document.clone()
    draft.accounts = [a for a in draft.accounts if a.id != account_id]
    append_audit_log(draft, "Account Deleted", f"Removed ledger account: {account.name}")

    if account.balance != ZERO:
        logger.warning("Deleted account %s with nonzero balance %s", account.name, account.balance)
    return draft, AccountRemoval(account=account, imbalance_warning=account.balance != ZERO)
