# Overview: CSV/Excel catalog exchange, sales-ledger CSV export and full-document JSON backup.

"""
Export Service

CSV files are written for spreadsheet users: UTF-8 with a byte-order mark,
comma separated, text cells quoted with doubled inner quotes, numbers bare.

Product import accepts the same column order it exports:
Name, SKU, Barcode, Cost Price, Sell Price, Stock, Category.
The header row is skipped, blank lines are skipped, rows with fewer than two
columns are skipped, unparsable numbers become 0 and every row gets a fresh id.
"""

from __future__ import annotations

import csv
import io
import json
from decimal import Decimal, InvalidOperation

from ..models import AppData, Product, Transaction, DEFAULT_CATEGORY
from ..time_utils import from_ms
from ..validation import as_number, ValidationError, ZERO
from .identifier_service import generate_id


BOM = "\ufeff"

PRODUCT_COLUMNS = ["Name", "SKU", "Barcode", "Cost Price", "Sell Price", "Stock", "Category"]
SALES_COLUMNS = ["Invoice ID", "Date", "Customer", "Payment Method", "Subtotal", "Tax", "Total", "Items Count"]

WALK_IN_CUSTOMER = "Walk-in Customer"

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


def _write_csv(header: list[str], rows: list[list]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(header)
    csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_NONNUMERIC).writerows(rows)
    return BOM + buffer.getvalue()


# =============================================================================
# EXPORTS
# =============================================================================

def products_csv(document: AppData) -> str:
    rows = [
        [
            p.name,
            p.sku or "",
            p.barcode or "",
            as_number(p.cost_price),
            as_number(p.sell_price),
            p.stock,
            p.category or "",
        ]
        for p in document.products
    ]
    return _write_csv(PRODUCT_COLUMNS, rows)


def customer_name(document: AppData, transaction: Transaction) -> str:
    if not transaction.customer_id:
        return WALK_IN_CUSTOMER
    customer = document.find_customer(transaction.customer_id)
    return customer.name if customer else WALK_IN_CUSTOMER


def sales_csv(document: AppData) -> str:
    rows = [
        [
            t.invoice_number,
            from_ms(t.timestamp).date().isoformat(),
            customer_name(document, t),
            t.payment_method,
            as_number(t.subtotal),
            as_number(t.tax),
            as_number(t.total),
            len(t.items),
        ]
        for t in document.transactions
    ]
    return _write_csv(SALES_COLUMNS, rows)


# =============================================================================
# IMPORTS
# =============================================================================

def _cell(parts: list, index: int) -> str:
    if index >= len(parts) or parts[index] is None:
        return ""
    return str(parts[index]).strip()


def _parse_money(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        return ZERO
    return value if value.is_finite() else ZERO


def _parse_stock(raw: str) -> int:
    try:
        return int(Decimal(raw))
    except (InvalidOperation, ValueError, OverflowError):
        return 0


def _product_from_row(parts: list) -> Product | None:
    if len(parts) < 2:
        return None
    return Product(
        id=generate_id(),
        name=_cell(parts, 0),
        sku=_cell(parts, 1),
        barcode=_cell(parts, 2),
        cost_price=_parse_money(_cell(parts, 3)),
        sell_price=_parse_money(_cell(parts, 4)),
        stock=_parse_stock(_cell(parts, 5)),
        category=_cell(parts, 6) or DEFAULT_CATEGORY,
    )


def parse_products_csv(text: str) -> list[Product]:
    if text.startswith(BOM):
        text = text[len(BOM):]

    products: list[Product] = []
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for parts in reader:
        if not any(cell.strip() for cell in parts):
            continue
        product = _product_from_row(parts)
        if product is not None:
            products.append(product)
    return products


def parse_products_xlsx(stream) -> list[Product]:
    from openpyxl import load_workbook

    wb = load_workbook(stream, read_only=True, data_only=True)
    sheet = wb.active
    products: list[Product] = []
    for index, row in enumerate(sheet.iter_rows(values_only=True)):
        if index == 0:
            continue
        parts = list(row)
        while parts and (parts[-1] is None or str(parts[-1]).strip() == ""):
            parts.pop()
        if not parts:
            continue
        product = _product_from_row(parts)
        if product is not None:
            products.append(product)
    wb.close()
    return products


def parse_product_upload(filename: str, stream) -> list[Product]:
    """Dispatch an uploaded catalog file on its extension (csv or Excel)."""
    ext = (filename or "").rsplit(".", 1)[-1].lower()
    if ext == "csv":
        return parse_products_csv(stream.read().decode("utf-8-sig"))
    if ext in EXCEL_EXTENSIONS:
        return parse_products_xlsx(stream)
    raise ValidationError("Unsupported file format")


# =============================================================================
# JSON BACKUP
# =============================================================================

def backup_json(document: AppData) -> str:
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False)


def parse_backup(raw) -> AppData:
    """Accept a backup as JSON text, bytes or an already-decoded object."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("Backup is not valid UTF-8 text")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Backup is not valid JSON: {e.msg}")
    if not isinstance(raw, dict):
        raise ValidationError("Backup must be a JSON object")
    if not isinstance(raw.get("products", []), list) or not isinstance(raw.get("transactions", []), list):
        raise ValidationError("Backup does not look like an ERP document")
    try:
        return AppData.from_dict(raw)
    except ValidationError:
        raise
    except (AttributeError, TypeError, KeyError, ValueError, ArithmeticError):
        raise ValidationError("Backup does not look like an ERP document")
