# Overview: Flask API routes for customers (including debt collection) and suppliers.

from flask import Blueprint, jsonify, request

from ..models import PAYMENT_CASH
from ..services import catalog_service, debt_service
from ..services.document_store import get_document_store
from ..validation import NotFoundError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")
suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@customers_bp.get("")
def list_customers():
    document = get_document_store().snapshot()
    term = (request.args.get("q") or "").strip().lower()
    customers = [
        c for c in document.customers
        if not term or term in c.name.lower() or term in c.phone
    ]
    return jsonify({"customers": [c.to_dict() for c in customers]})


@customers_bp.post("")
def create_customer():
    data = request.get_json(silent=True) or {}
    customer = get_document_store().apply(catalog_service.create_customer, data)
    return jsonify({"customer": customer.to_dict()}), 201


@customers_bp.get("/debtors")
def list_debtors():
    debtors = debt_service.list_debtors(get_document_store().snapshot())
    return jsonify({"debtors": [c.to_dict() for c in debtors]})


@customers_bp.get("/<customer_id>")
def get_customer(customer_id: str):
    document = get_document_store().snapshot()
    customer = document.find_customer(customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    linked = set(customer.history)
    history = [t.to_dict() for t in document.transactions if t.id in linked]
    return jsonify({"customer": customer.to_dict(), "transactions": history})


@customers_bp.delete("/<customer_id>")
def delete_customer(customer_id: str):
    customer = get_document_store().apply(catalog_service.delete_customer, customer_id)
    return jsonify({"deleted": customer.to_dict()})


@customers_bp.post("/<customer_id>/payments")
def receive_payment(customer_id: str):
    """
    Collect a debt payment.

    Body: {"amount": 4, "accountId": "acc-cash", "paymentMethod": "Cash"}
    """
    data = request.get_json(silent=True) or {}
    transaction = get_document_store().apply(
        debt_service.receive_debt_payment,
        customer_id,
        data.get("amount"),
        data.get("accountId"),
        data.get("paymentMethod") or PAYMENT_CASH,
        currency=data.get("currency"),
    )
    customer = get_document_store().snapshot().find_customer(customer_id)
    return jsonify({"transaction": transaction.to_dict(), "customer": customer.to_dict()}), 201


@suppliers_bp.get("")
def list_suppliers():
    suppliers = catalog_service.search_suppliers(get_document_store().snapshot(), request.args.get("q"))
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]})


@suppliers_bp.post("")
def create_supplier():
    data = request.get_json(silent=True) or {}
    supplier = get_document_store().apply(catalog_service.create_supplier, data)
    return jsonify({"supplier": supplier.to_dict()}), 201


@suppliers_bp.delete("/<supplier_id>")
def delete_supplier(supplier_id: str):
    supplier = get_document_store().apply(catalog_service.delete_supplier, supplier_id)
    return jsonify({"deleted": supplier.to_dict()})
