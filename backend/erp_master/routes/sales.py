# Overview: Flask API routes for checkout, the sales ledger and invoice reversal.

from flask import Blueprint, Response, jsonify, request

from ..services import sales_service, export_service
from ..services.audit_service import append_audit_log
from ..services.document_store import get_document_store
from ..services.sales_service import SaleError
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError, to_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _cart_from_payload(data: dict) -> list[tuple[str, int]]:
    items = data.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    cart = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("productId"):
            raise ValidationError(f"items[{index}] must have a productId")
        cart.append((str(item["productId"]), to_int(item.get("quantity"), f"items[{index}].quantity")))
    return cart


def _check_stock(document, cart) -> None:
    """The register never sells more than is on hand."""
    requested: dict[str, int] = {}
    for product_id, quantity in cart:
        requested[product_id] = requested.get(product_id, 0) + quantity

    short = []
    for product_id, quantity in requested.items():
        product = document.find_product(product_id)
        if product is not None and quantity > product.stock:
            short.append({"productId": product_id, "requested": quantity, "available": product.stock})
    if short:
        raise SaleError("Insufficient stock", details={"items": short})


def checked_sale(document, cart, settlement, **kwargs):
    """record_sale behind the stock check, both against the same locked snapshot."""
    _check_stock(document, cart)
    return sales_service.record_sale(document, cart, settlement, **kwargs)


@sales_bp.post("")
def checkout():
    """
    Check out a cart.

    Body:
        items: [{"productId": "...", "quantity": 3}]
        paymentMethod: Cash | Bank Transfer | Mobile Money | Debt | Partial Payment
        accountId: deposit account (optional for Debt)
        paymentDetails: {"cash": 5, "bank": 0, "mobile": 0} (Partial Payment)
        customerId: required for Debt and Partial Payment
    """
    data = request.get_json(silent=True) or {}
    cart = _cart_from_payload(data)
    settlement = sales_service.settlement_from_payload(data)

    transaction = get_document_store().apply(
        checked_sale,
        cart,
        settlement,
        customer_id=data.get("customerId") or None,
        currency=data.get("currency") or None,
    )
    if transaction is None:
        return jsonify({"transaction": None, "message": "Cart is empty"}), 200
    return jsonify({"transaction": transaction.to_dict(), "invoiceNumber": transaction.invoice_number}), 201


@sales_bp.get("")
def list_sales():
    document = get_document_store().snapshot()
    transactions = sales_service.list_transactions(document, transaction_type=request.args.get("type"))

    term = (request.args.get("q") or "").strip().lower()
    if term:
        transactions = [
            t for t in transactions
            if term in t.id.lower() or term in export_service.customer_name(document, t).lower()
        ]

    raw_limit = request.args.get("limit")
    if raw_limit:
        transactions = transactions[:max(to_int(raw_limit, "limit"), 0)]
    return jsonify({"transactions": [t.to_dict() for t in transactions]})


@sales_bp.get("/export.csv")
def export_sales():
    def _export(document):
        draft = document.clone()
        append_audit_log(draft, "Export Invoices", "Exported full sales ledger to Excel")
        return draft, export_service.sales_csv(document)

    content = get_document_store().apply(_export)
    filename = f"sales_report_{utcnow().date().isoformat()}.csv"
    return Response(
        content,
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@sales_bp.get("/<transaction_id>")
def get_sale(transaction_id: str):
    transaction = get_document_store().snapshot().find_transaction(transaction_id)
    if transaction is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    return jsonify({"transaction": transaction.to_dict(), "invoiceNumber": transaction.invoice_number})


@sales_bp.delete("/<transaction_id>")
def delete_sale(transaction_id: str):
    transaction = get_document_store().apply(sales_service.delete_invoice, transaction_id)
    return jsonify({"deleted": transaction.to_dict(), "invoiceNumber": transaction.invoice_number})
