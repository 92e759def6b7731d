# Overview: The single shared business document and its first-run defaults.

"""
AppData is the whole business state: catalog, sales, parties, ledger accounts,
expenses, stock adjustments, audit trail and settings.

Handlers never edit a committed snapshot. They clone it, change the clone and
hand the clone back; the document store swaps it in as the new snapshot.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Iterable, TypeVar

from .accounts import Account, default_accounts
from .audit import AuditLog
from .catalog import Product
from .finance import Expense
from .inventory import StockAdjustment
from .parties import Customer, Supplier
from .sales import Transaction
from .settings import AppSettings, UserProfile, ROLE_ADMIN


T = TypeVar("T")


def _find(items: Iterable[T], predicate: Callable[[T], bool]) -> T | None:
    for item in items:
        if predicate(item):
            return item
    return None


def default_users() -> list[UserProfile]:
    return [UserProfile(id="1", name="Admin User", role=ROLE_ADMIN, is_active=True)]


@dataclass
class AppData:
    products: list[Product] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    suppliers: list[Supplier] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    stock_adjustments: list[StockAdjustment] = field(default_factory=list)
    audit_logs: list[AuditLog] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)
    users: list[UserProfile] = field(default_factory=default_users)
    accounts: list[Account] = field(default_factory=default_accounts)
    last_modified: int | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "AppData":
        """
        Build a document from its stored JSON shape.

        Collections missing from the payload fall back to first-run defaults;
        collections present but empty stay empty.
        """
        defaults = cls()

        def collection(key: str, factory, fallback):
            if key not in raw or raw[key] is None:
                return fallback
            return [factory(item) for item in raw[key]]

        return cls(
            products=collection("products", Product.from_dict, defaults.products),
            transactions=collection("transactions", Transaction.from_dict, defaults.transactions),
            customers=collection("customers", Customer.from_dict, defaults.customers),
            suppliers=collection("suppliers", Supplier.from_dict, defaults.suppliers),
            expenses=collection("expenses", Expense.from_dict, defaults.expenses),
            stock_adjustments=collection("stockAdjustments", StockAdjustment.from_dict, defaults.stock_adjustments),
            audit_logs=collection("auditLogs", AuditLog.from_dict, defaults.audit_logs),
            settings=AppSettings.from_dict(raw.get("settings") or {}),
            users=collection("users", UserProfile.from_dict, defaults.users),
            accounts=collection("accounts", Account.from_dict, defaults.accounts),
            last_modified=raw.get("lastModified"),
        )

    def to_dict(self) -> dict:
        data = {
            "products": [p.to_dict() for p in self.products],
            "transactions": [t.to_dict() for t in self.transactions],
            "customers": [c.to_dict() for c in self.customers],
            "suppliers": [s.to_dict() for s in self.suppliers],
            "expenses": [e.to_dict() for e in self.expenses],
            "stockAdjustments": [a.to_dict() for a in self.stock_adjustments],
            "auditLogs": [log.to_dict() for log in self.audit_logs],
            "settings": self.settings.to_dict(),
            "users": [u.to_dict() for u in self.users],
            "accounts": [a.to_dict() for a in self.accounts],
        }
        if self.last_modified is not None:
            data["lastModified"] = self.last_modified
        return data

    def clone(self) -> "AppData":
        """Deep copy used as the draft for the next snapshot."""
        return copy.deepcopy(self)

    # Lookups by id (relationships are resolved at compute time, never embedded)

    def find_product(self, product_id: str) -> Product | None:
        return _find(self.products, lambda p: p.id == product_id)

    def find_customer(self, customer_id: str) -> Customer | None:
        return _find(self.customers, lambda c: c.id == customer_id)

    def find_supplier(self, supplier_id: str) -> Supplier | None:
        return _find(self.suppliers, lambda s: s.id == supplier_id)

    def find_account(self, account_id: str) -> Account | None:
        return _find(self.accounts, lambda a: a.id == account_id)

    def accounts_named(self, name: str) -> list[Account]:
        return [a for a in self.accounts if a.name == name]

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        return _find(self.transactions, lambda t: t.id == transaction_id)

    def find_expense(self, expense_id: str) -> Expense | None:
        return _find(self.expenses, lambda e: e.id == expense_id)

    def find_adjustment(self, adjustment_id: str) -> StockAdjustment | None:
        return _find(self.stock_adjustments, lambda a: a.id == adjustment_id)

    def find_user(self, user_id: str) -> UserProfile | None:
        return _find(self.users, lambda u: u.id == user_id)


def initial_document() -> AppData:
    """First-run document: default settings, one Admin user, seven seeded accounts."""
    return AppData()
