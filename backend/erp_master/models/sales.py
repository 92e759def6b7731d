# Overview: Sale transactions and the settlement variants a checkout can use.

"""
A checkout is settled one of three ways:

- FullSettlement: the whole total lands in one account (Cash, Bank Transfer,
  Mobile Money).
- CreditSettlement: nothing is received; the whole total becomes customer debt.
- SplitSettlement: cash/bank/mobile sub-amounts are received into one account
  and the remainder becomes customer debt.

Transactions keep the flat wire fields (paymentMethod, accountId,
paymentDetails) so stored documents stay readable by older clients;
Transaction.settlement rebuilds the variant from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from .base import text, optional_text, money, integer, number, compact
from .catalog import CartItem


PAYMENT_CASH = "Cash"
PAYMENT_BANK = "Bank Transfer"
PAYMENT_MOBILE_MONEY = "Mobile Money"
PAYMENT_DEBT = "Debt"
PAYMENT_PARTIAL = "Partial Payment"

IMMEDIATE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK, PAYMENT_MOBILE_MONEY)

VALID_PAYMENT_METHODS = (
    PAYMENT_CASH,
    PAYMENT_BANK,
    PAYMENT_MOBILE_MONEY,
    PAYMENT_DEBT,
    PAYMENT_PARTIAL,
)

TX_SALE = "SALE"
TX_RETURN = "RETURN"
TX_DEBT_PAYMENT = "DEBT_PAYMENT"

VALID_TRANSACTION_TYPES = (TX_SALE, TX_RETURN, TX_DEBT_PAYMENT)

CURRENCY_USD = "USD"
CURRENCY_ETB = "ETB"

VALID_CURRENCIES = (CURRENCY_USD, CURRENCY_ETB)


@dataclass(frozen=True)
class FullSettlement:
    method: str
    account_id: str

    @property
    def payment_method(self) -> str:
        return self.method

    def deposit_amount(self, total: Decimal) -> Decimal:
        return total

    def debt_amount(self, total: Decimal) -> Decimal:
        return Decimal("0")


@dataclass(frozen=True)
class CreditSettlement:
    # A debt sale may still name an account; nothing is deposited into it
    account_id: str | None = None

    @property
    def payment_method(self) -> str:
        return PAYMENT_DEBT

    def deposit_amount(self, total: Decimal) -> Decimal:
        return Decimal("0")

    def debt_amount(self, total: Decimal) -> Decimal:
        return total


@dataclass(frozen=True)
class SplitSettlement:
    account_id: str
    cash: Decimal = Decimal("0")
    bank: Decimal = Decimal("0")
    mobile: Decimal = Decimal("0")

    @property
    def payment_method(self) -> str:
        return PAYMENT_PARTIAL

    @property
    def received(self) -> Decimal:
        return self.cash + self.bank + self.mobile

    def deposit_amount(self, total: Decimal) -> Decimal:
        return self.received

    def debt_amount(self, total: Decimal) -> Decimal:
        # No check that the parts add up to the total: the remainder, even a
        # negative one, is what the customer owes.
        return total - self.received


Settlement = Union[FullSettlement, CreditSettlement, SplitSettlement]


@dataclass
class PaymentDetails:
    cash: Decimal = Decimal("0")
    bank: Decimal = Decimal("0")
    mobile: Decimal = Decimal("0")
    debt: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, raw: dict) -> "PaymentDetails":
        return cls(
            cash=money(raw, "cash"),
            bank=money(raw, "bank"),
            mobile=money(raw, "mobile"),
            debt=money(raw, "debt"),
        )

    def to_dict(self) -> dict:
        return {
            "cash": number(self.cash),
            "debt": number(self.debt),
            "bank": number(self.bank),
            "mobile": number(self.mobile),
        }

    @property
    def received(self) -> Decimal:
        return self.cash + self.bank + self.mobile


@dataclass
class Transaction:
    id: str
    items: list[CartItem]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    exchange_rate: Decimal
    payment_method: str
    timestamp: int
    type: str = TX_SALE
    account_id: str | None = None
    payment_details: PaymentDetails | None = None
    customer_id: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Transaction":
        details = raw.get("paymentDetails")
        return cls(
            id=text(raw, "id"),
            items=[CartItem.from_dict(item) for item in (raw.get("items") or [])],
            subtotal=money(raw, "subtotal"),
            tax=money(raw, "tax"),
            total=money(raw, "total"),
            currency=text(raw, "currency", CURRENCY_USD),
            exchange_rate=money(raw, "exchangeRate"),
            payment_method=text(raw, "paymentMethod", PAYMENT_CASH),
            timestamp=integer(raw, "timestamp"),
            type=text(raw, "type", TX_SALE),
            account_id=optional_text(raw, "accountId"),
            payment_details=PaymentDetails.from_dict(details) if isinstance(details, dict) else None,
            customer_id=optional_text(raw, "customerId"),
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "subtotal": number(self.subtotal),
            "tax": number(self.tax),
            "total": number(self.total),
            "currency": self.currency,
            "exchangeRate": number(self.exchange_rate),
            "paymentMethod": self.payment_method,
            "accountId": self.account_id,
            "paymentDetails": self.payment_details.to_dict() if self.payment_details else None,
            "customerId": self.customer_id,
            "timestamp": self.timestamp,
            "type": self.type,
        })

    @property
    def settlement(self) -> Settlement:
        if self.payment_method == PAYMENT_DEBT:
            return CreditSettlement(account_id=self.account_id)
        if self.payment_method == PAYMENT_PARTIAL:
            details = self.payment_details or PaymentDetails()
            return SplitSettlement(
                account_id=self.account_id or "",
                cash=details.cash,
                bank=details.bank,
                mobile=details.mobile,
            )
        return FullSettlement(method=self.payment_method, account_id=self.account_id or "")

    @property
    def amount_received(self) -> Decimal:
        """What went into accountId when this transaction was recorded."""
        if self.payment_method == PAYMENT_PARTIAL:
            return self.payment_details.received if self.payment_details else Decimal("0")
        if self.payment_method == PAYMENT_DEBT:
            return Decimal("0")
        return self.total

    @property
    def debt_incurred(self) -> Decimal:
        """What was added to the customer's debt when this sale was recorded."""
        if self.payment_method == PAYMENT_DEBT:
            return self.total
        if self.payment_method == PAYMENT_PARTIAL and self.payment_details:
            return self.payment_details.debt
        return Decimal("0")

    @property
    def cost_of_goods(self) -> Decimal:
        return sum((item.line_cost for item in self.items), Decimal("0"))

    @property
    def invoice_number(self) -> str:
        return f"INV-{self.id[-5:].upper()}"
