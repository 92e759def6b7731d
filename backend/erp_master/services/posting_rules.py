# Overview: Posting rule table; the only code that moves ledger account balances.

"""
Posting Rules

Every business event that moves money names its account movements here, as a
list of (selector, sign, floor_at_zero) lines. Handlers pick the event and the
amount; they never touch Account.balance directly.

Selectors:
- TARGET: the account the caller chose (deposit, funding or refund account)
- INVENTORY: every account named "Inventory Asset"
- LOSS: every account carrying the loss-account name for the adjustment type

Lines apply in order. A floored line clamps the resulting balance at zero, so
a debit larger than the balance empties the account instead of overdrawing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..models import AppData, INVENTORY_ACCOUNT_NAME
from ..validation import floor_at_zero


SELECT_TARGET = "target"
SELECT_INVENTORY = "inventory"
SELECT_LOSS = "loss"

EVENT_SALE = "sale"
EVENT_SALE_REVERSAL = "sale.reversed"
EVENT_DEBT_PAYMENT = "debt_payment"
EVENT_DEBT_PAYMENT_REVERSAL = "debt_payment.reversed"
EVENT_STOCK_IN = "stock_in"
EVENT_STOCK_LOSS = "stock_loss"
EVENT_STOCK_LOSS_REVERSAL = "stock_loss.reversed"
EVENT_EXPENSE = "expense"
EVENT_EXPENSE_REFUND = "expense.refunded"


class PostingError(Exception):
    """Raised when a posting cannot resolve its accounts."""
    pass


@dataclass(frozen=True)
class PostingLine:
    selector: str
    sign: int
    floor_at_zero: bool = False


@dataclass(frozen=True)
class Movement:
    account_id: str
    account_name: str
    before: Decimal
    after: Decimal

    @property
    def delta(self) -> Decimal:
        return self.after - self.before


POSTING_RULES: dict[str, tuple[PostingLine, ...]] = {
    EVENT_SALE: (
        PostingLine(SELECT_TARGET, +1),
    ),
    EVENT_SALE_REVERSAL: (
        PostingLine(SELECT_TARGET, -1, floor_at_zero=True),
    ),
    EVENT_DEBT_PAYMENT: (
        PostingLine(SELECT_TARGET, +1),
    ),
    EVENT_DEBT_PAYMENT_REVERSAL: (
        PostingLine(SELECT_TARGET, -1, floor_at_zero=True),
    ),
    EVENT_STOCK_IN: (
        PostingLine(SELECT_TARGET, -1),
    ),
    EVENT_STOCK_LOSS: (
        PostingLine(SELECT_INVENTORY, -1, floor_at_zero=True),
        PostingLine(SELECT_LOSS, +1),
    ),
    EVENT_STOCK_LOSS_REVERSAL: (
        PostingLine(SELECT_INVENTORY, +1),
        PostingLine(SELECT_LOSS, -1, floor_at_zero=True),
    ),
    EVENT_EXPENSE: (
        PostingLine(SELECT_TARGET, -1),
    ),
    EVENT_EXPENSE_REFUND: (
        PostingLine(SELECT_TARGET, +1),
    ),
}


def _resolve(document: AppData, selector: str, *, target_account_id: str | None, loss_account: str | None):
    if selector == SELECT_TARGET:
        if not target_account_id:
            raise PostingError("Posting requires a target account")
        account = document.find_account(target_account_id)
        return [account] if account else []
    if selector == SELECT_INVENTORY:
        return document.accounts_named(INVENTORY_ACCOUNT_NAME)
    if selector == SELECT_LOSS:
        if not loss_account:
            raise PostingError("Posting requires a loss account name")
        return document.accounts_named(loss_account)
    raise PostingError(f"Unknown account selector: {selector}")


def post(
    document: AppData,
    event_type: str,
    amount: Decimal,
    *,
    target_account_id: str | None = None,
    loss_account: str | None = None,
) -> list[Movement]:
    """
    Apply the posting lines for event_type to a draft document.

    A zero amount posts nothing. Selectors that match no account are skipped,
    the same way a deleted account simply stops receiving movements.

    Returns the balance movements applied, in order.
    """
    if event_type not in POSTING_RULES:
        raise PostingError(f"No posting rule for event: {event_type}")

    if amount == 0:
        return []

    movements: list[Movement] = []
    for line in POSTING_RULES[event_type]:
        accounts = _resolve(
            document,
            line.selector,
            target_account_id=target_account_id,
            loss_account=loss_account,
        )
        for account in accounts:
            before = account.balance
            after = before + (amount * line.sign)
            if line.floor_at_zero:
                after = floor_at_zero(after)
            account.balance = after
            movements.append(Movement(
                account_id=account.id,
                account_name=account.name,
                before=before,
                after=after,
            ))
    return movements
