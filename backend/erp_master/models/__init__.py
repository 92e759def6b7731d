# Overview: Package exports for the business document and its records.

from .accounts import (
    Account,
    ACCOUNT_TYPE_ASSET,
    ACCOUNT_TYPE_FIXED_ASSET,
    ACCOUNT_TYPE_EQUITY,
    ACCOUNT_TYPE_OTHER_CURRENT_ASSET,
    ACCOUNT_TYPE_LIABILITY,
    VALID_ACCOUNT_TYPES,
    ASSET_ACCOUNT_TYPES,
    INVENTORY_ACCOUNT_ID,
    INVENTORY_ACCOUNT_NAME,
    LOSS_DAMAGED_ACCOUNT_NAME,
    LOSS_LOST_ACCOUNT_NAME,
    LOSS_EXPIRED_ACCOUNT_NAME,
    default_accounts,
)
from .audit import AuditLog, AUDIT_DISPLAY_LIMIT
from .catalog import Product, CartItem, DEFAULT_CATEGORY, CRITICAL_STOCK_LEVEL, LOW_STOCK_LEVEL
from .document import AppData, initial_document
from .finance import Expense, DEFAULT_EXPENSE_CATEGORY
from .inventory import (
    StockAdjustment,
    ADJUSTMENT_DAMAGE,
    ADJUSTMENT_LOST,
    ADJUSTMENT_EXPIRED,
    ADJUSTMENT_RETURN_TO_VENDOR,
    ADJUSTMENT_STOCK_IN,
    LOSS_ADJUSTMENT_TYPES,
    VALID_ADJUSTMENT_TYPES,
    loss_account_name,
)
from .parties import Customer, Supplier
from .sales import (
    Transaction,
    PaymentDetails,
    FullSettlement,
    CreditSettlement,
    SplitSettlement,
    Settlement,
    PAYMENT_CASH,
    PAYMENT_BANK,
    PAYMENT_MOBILE_MONEY,
    PAYMENT_DEBT,
    PAYMENT_PARTIAL,
    IMMEDIATE_PAYMENT_METHODS,
    VALID_PAYMENT_METHODS,
    TX_SALE,
    TX_RETURN,
    TX_DEBT_PAYMENT,
    CURRENCY_USD,
    CURRENCY_ETB,
    VALID_CURRENCIES,
)
from .settings import (
    AppSettings,
    CurrentUser,
    SyncSettings,
    UserProfile,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_CASHIER,
    VALID_ROLES,
)
from .storage import StoredDocument
