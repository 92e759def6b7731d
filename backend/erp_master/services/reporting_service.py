# Overview: Read-side aggregations over the document: statements, Z-report, period summary, dashboard.

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..models import (
    AppData,
    Transaction,
    Expense,
    Customer,
    Product,
    INVENTORY_ACCOUNT_ID,
    ACCOUNT_TYPE_ASSET,
    ACCOUNT_TYPE_OTHER_CURRENT_ASSET,
    ACCOUNT_TYPE_FIXED_ASSET,
    ACCOUNT_TYPE_LIABILITY,
    ACCOUNT_TYPE_EQUITY,
    DEFAULT_CATEGORY,
    CRITICAL_STOCK_LEVEL,
    PAYMENT_CASH,
    PAYMENT_BANK,
    PAYMENT_MOBILE_MONEY,
    PAYMENT_DEBT,
    PAYMENT_PARTIAL,
)
from ..time_utils import DAY_MS, HOUR_MS, now_ms, start_of_day_ms, from_ms, parse_iso_datetime, end_of_day, to_ms
from ..validation import as_number, ZERO


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


# Balance sheet is advisory: totals within a cent count as balanced
BALANCE_TOLERANCE = Decimal("0.01")

PERIOD_6H = "6h"
PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIOD_YEARLY = "yearly"
PERIOD_CUSTOM = "custom"

VALID_PERIODS = (PERIOD_6H, PERIOD_DAILY, PERIOD_WEEKLY, PERIOD_MONTHLY, PERIOD_YEARLY, PERIOD_CUSTOM)

TOP_DEBTORS_LIMIT = 5
REVENUE_SERIES_DAYS = 7


def _total(values) -> Decimal:
    return sum(values, ZERO)


def _revenue(transactions: list[Transaction]) -> Decimal:
    return _total(t.total for t in transactions)


def _cogs(transactions: list[Transaction]) -> Decimal:
    # Item snapshots carry cost at sale time
    return _total(t.cost_of_goods for t in transactions)


def _expenses(expenses: list[Expense]) -> Decimal:
    return _total(e.amount for e in expenses)


# =============================================================================
# FINANCIAL STATEMENTS
# =============================================================================

@dataclass
class FinancialStatements:
    revenue: Decimal
    cogs: Decimal
    expenses: Decimal
    liquid_assets: Decimal
    fixed_assets: Decimal
    inventory_value: Decimal
    receivables: Decimal
    payables: Decimal
    custom_liabilities: Decimal
    custom_equity: Decimal

    @property
    def gross_profit(self) -> Decimal:
        return self.revenue - self.cogs

    @property
    def net_profit(self) -> Decimal:
        return self.gross_profit - self.expenses

    @property
    def total_assets(self) -> Decimal:
        # Fixed assets are reported on their own line and stay out of the balance check
        return self.liquid_assets + self.inventory_value + self.receivables

    @property
    def total_liabilities(self) -> Decimal:
        return self.payables + self.custom_liabilities

    @property
    def total_equity(self) -> Decimal:
        return self.net_profit + self.custom_equity

    @property
    def discrepancy(self) -> Decimal:
        return self.total_assets - (self.total_liabilities + self.total_equity)

    @property
    def is_balanced(self) -> bool:
        return abs(self.discrepancy) < BALANCE_TOLERANCE

    def to_dict(self) -> dict:
        return {
            "incomeStatement": {
                "revenue": as_number(self.revenue),
                "cogs": as_number(self.cogs),
                "grossProfit": as_number(self.gross_profit),
                "expenses": as_number(self.expenses),
                "netProfit": as_number(self.net_profit),
            },
            "balanceSheet": {
                "liquidAssets": as_number(self.liquid_assets),
                "fixedAssets": as_number(self.fixed_assets),
                "inventoryValue": as_number(self.inventory_value),
                "accountsReceivable": as_number(self.receivables),
                "accountsPayable": as_number(self.payables),
                "customLiabilities": as_number(self.custom_liabilities),
                "customEquity": as_number(self.custom_equity),
                "totalAssets": as_number(self.total_assets),
                "totalLiabilities": as_number(self.total_liabilities),
                "totalEquity": as_number(self.total_equity),
            },
            "isBalanced": self.is_balanced,
            "discrepancy": as_number(self.discrepancy),
        }


def _is_liquid(account) -> bool:
    return (
        account.type in (ACCOUNT_TYPE_ASSET, ACCOUNT_TYPE_OTHER_CURRENT_ASSET)
        and account.id != INVENTORY_ACCOUNT_ID
        and "receivables" not in account.name.lower()
    )


def financial_statements(document: AppData) -> FinancialStatements:
    """
    Income statement and balance sheet over the whole document.

    Inventory is valued at current cost; the "Inventory Asset" account itself
    is left out of assets so stock is not counted twice. Receivables come from
    customer debt, payables from supplier balances.
    """
    accounts = document.accounts
    return FinancialStatements(
        revenue=_revenue(document.transactions),
        cogs=_cogs(document.transactions),
        expenses=_expenses(document.expenses),
        liquid_assets=_total(a.balance for a in accounts if _is_liquid(a)),
        fixed_assets=_total(a.balance for a in accounts if a.type == ACCOUNT_TYPE_FIXED_ASSET),
        inventory_value=_total(p.cost_price * p.stock for p in document.products),
        receivables=_total(c.debt_balance for c in document.customers),
        payables=_total(s.balance for s in document.suppliers),
        custom_liabilities=_total(a.balance for a in accounts if a.type == ACCOUNT_TYPE_LIABILITY),
        custom_equity=_total(a.balance for a in accounts if a.type == ACCOUNT_TYPE_EQUITY),
    )


# =============================================================================
# Z-REPORT (DAILY CLOSING)
# =============================================================================

def _method_share(transaction: Transaction, method: str, part: str) -> Decimal:
    if transaction.payment_method == method:
        return transaction.total
    if transaction.payment_method == PAYMENT_PARTIAL and transaction.payment_details:
        return getattr(transaction.payment_details, part)
    return ZERO


@dataclass
class ZReport:
    day_start: int
    count: int
    total_sales: Decimal
    cash: Decimal
    bank: Decimal
    mobile: Decimal
    debt: Decimal
    expenses: Decimal

    @property
    def net_cash(self) -> Decimal:
        return self.cash + self.bank + self.mobile - self.expenses

    def to_dict(self) -> dict:
        return {
            "dayStart": self.day_start,
            "count": self.count,
            "totalSales": as_number(self.total_sales),
            "cash": as_number(self.cash),
            "bank": as_number(self.bank),
            "mobile": as_number(self.mobile),
            "debt": as_number(self.debt),
            "expenses": as_number(self.expenses),
            "netCash": as_number(self.net_cash),
        }


def z_report(document: AppData, *, reference_ms: int | None = None, utc_offset_minutes: int = 0) -> ZReport:
    start = start_of_day_ms(reference_ms, utc_offset_minutes)
    transactions = [t for t in document.transactions if t.timestamp >= start]
    expenses = [e for e in document.expenses if e.timestamp >= start]

    return ZReport(
        day_start=start,
        count=len(transactions),
        total_sales=_revenue(transactions),
        cash=_total(_method_share(t, PAYMENT_CASH, "cash") for t in transactions),
        bank=_total(_method_share(t, PAYMENT_BANK, "bank") for t in transactions),
        mobile=_total(_method_share(t, PAYMENT_MOBILE_MONEY, "mobile") for t in transactions),
        debt=_total(_method_share(t, PAYMENT_DEBT, "debt") for t in transactions),
        expenses=_expenses(expenses),
    )


# =============================================================================
# PERIOD SUMMARY
# =============================================================================

@dataclass
class PeriodSummary:
    period: str
    start: int
    end: int | None
    invoice_count: int
    sales: Decimal
    cogs: Decimal
    expenses: Decimal
    categories: list[tuple[str, Decimal]] = field(default_factory=list)

    @property
    def gross_profit(self) -> Decimal:
        return self.sales - self.cogs

    @property
    def net_profit(self) -> Decimal:
        return self.gross_profit - self.expenses

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "start": self.start,
            "end": self.end,
            "invoiceCount": self.invoice_count,
            "sales": as_number(self.sales),
            "cogs": as_number(self.cogs),
            "expenses": as_number(self.expenses),
            "grossProfit": as_number(self.gross_profit),
            "netProfit": as_number(self.net_profit),
            "categories": [{"name": name, "value": as_number(value)} for name, value in self.categories],
        }


def period_bounds(
    period: str,
    *,
    start: str | None = None,
    end: str | None = None,
    reference_ms: int | None = None,
    utc_offset_minutes: int = 0,
) -> tuple[int, int | None]:
    """
    Resolve a report period to (start_ms, end_ms). end_ms is None for
    open-ended periods running up to now.

    Custom ranges are inclusive of the end date: the end bound is the given
    date plus one day.
    """
    now = reference_ms if reference_ms is not None else now_ms()

    if period == PERIOD_6H:
        return now - 6 * HOUR_MS, None
    if period == PERIOD_DAILY:
        return start_of_day_ms(now, utc_offset_minutes), None
    if period == PERIOD_WEEKLY:
        return now - 7 * DAY_MS, None
    if period == PERIOD_MONTHLY:
        return now - 30 * DAY_MS, None
    if period == PERIOD_YEARLY:
        return now - 365 * DAY_MS, None
    if period == PERIOD_CUSTOM:
        try:
            start_dt = parse_iso_datetime(start)
            end_dt = parse_iso_datetime(end)
        except ValueError:
            raise ReportError("start and end must be ISO dates")
        start_ms = to_ms(start_dt) if start_dt else 0
        end_ms = to_ms(end_of_day(end_dt)) if end_dt else now
        if end_ms < start_ms:
            raise ReportError("end must not be before start")
        return start_ms, end_ms

    raise ReportError(f"period must be one of {', '.join(VALID_PERIODS)}")


def _category_breakdown(transactions: list[Transaction]) -> list[tuple[str, Decimal]]:
    stats: dict[str, Decimal] = {}
    for transaction in transactions:
        for item in transaction.items:
            category = item.category or DEFAULT_CATEGORY
            stats[category] = stats.get(category, ZERO) + item.line_total
    return sorted(stats.items(), key=lambda entry: entry[1], reverse=True)


def period_summary(
    document: AppData,
    period: str,
    *,
    start: str | None = None,
    end: str | None = None,
    reference_ms: int | None = None,
    utc_offset_minutes: int = 0,
) -> PeriodSummary:
    start_ms, end_ms = period_bounds(
        period, start=start, end=end, reference_ms=reference_ms, utc_offset_minutes=utc_offset_minutes,
    )

    def in_range(timestamp: int) -> bool:
        if timestamp < start_ms:
            return False
        return end_ms is None or timestamp <= end_ms

    transactions = [t for t in document.transactions if in_range(t.timestamp)]
    expenses = [e for e in document.expenses if in_range(e.timestamp)]

    return PeriodSummary(
        period=period,
        start=start_ms,
        end=end_ms,
        invoice_count=len(transactions),
        sales=_revenue(transactions),
        cogs=_cogs(transactions),
        expenses=_expenses(expenses),
        categories=_category_breakdown(transactions),
    )


# =============================================================================
# DASHBOARD
# =============================================================================

def active_debtors(document: AppData) -> list[Customer]:
    return [c for c in document.customers if c.debt_balance > ZERO]


def critical_stock(document: AppData) -> list[Product]:
    return [p for p in document.products if p.stock < CRITICAL_STOCK_LEVEL]


def revenue_series(document: AppData, *, days: int = REVENUE_SERIES_DAYS, reference_ms: int | None = None) -> list[dict]:
    """Revenue and profit per UTC day for the last `days` days, oldest first."""
    today = start_of_day_ms(reference_ms)
    buckets: dict[int, list[Decimal]] = {}
    for offset in range(days - 1, -1, -1):
        buckets[today - offset * DAY_MS] = [ZERO, ZERO]

    for transaction in document.transactions:
        bucket = buckets.get(start_of_day_ms(transaction.timestamp))
        if bucket is None:
            continue
        bucket[0] += transaction.total
        bucket[1] += transaction.total - transaction.cost_of_goods

    return [
        {
            "date": from_ms(day).date().isoformat(),
            "revenue": as_number(revenue),
            "profit": as_number(profit),
        }
        for day, (revenue, profit) in buckets.items()
    ]


def dashboard(document: AppData, *, reference_ms: int | None = None) -> dict:
    transactions = document.transactions
    total_sales = _revenue(transactions)
    total_profit = total_sales - _cogs(transactions)
    debtors = active_debtors(document)
    top = sorted(debtors, key=lambda c: c.debt_balance, reverse=True)[:TOP_DEBTORS_LIMIT]
    sync = document.settings.sync_settings

    return {
        "totalSales": as_number(total_sales),
        "totalProfit": as_number(total_profit),
        "criticalStock": [p.to_dict() for p in critical_stock(document)],
        "activeDebtorCount": len(debtors),
        "topDebtors": [c.to_dict() for c in top],
        "series": revenue_series(document, reference_ms=reference_ms),
        "cloud": {
            "hasGithub": bool(document.settings.github_token),
            "hasSupabase": bool(document.settings.supabase_url),
            "lastSyncedAt": sync.last_synced_at or None,
        },
    }
