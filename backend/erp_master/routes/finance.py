# Overview: Flask API routes for expenses, the chart of accounts and financial statements.

from flask import Blueprint, jsonify, request

from ..services import finance_service, reporting_service
from ..services.document_store import get_document_store
from ..validation import as_number


finance_bp = Blueprint("finance", __name__, url_prefix="/api")


@finance_bp.get("/expenses")
def list_expenses():
    document = get_document_store().snapshot()
    return jsonify({"expenses": [e.to_dict() for e in document.expenses]})


@finance_bp.post("/expenses")
def create_expense():
    data = request.get_json(silent=True) or {}
    receipt = get_document_store().apply(finance_service.add_expense, data)
    return jsonify({
        "expense": receipt.expense.to_dict(),
        "insufficientFunds": receipt.insufficient_funds,
    }), 201


@finance_bp.delete("/expenses/<expense_id>")
def delete_expense(expense_id: str):
    expense = get_document_store().apply(finance_service.delete_expense, expense_id)
    return jsonify({"deleted": expense.to_dict()})


@finance_bp.get("/accounts")
def list_accounts():
    document = get_document_store().snapshot()
    return jsonify({"accounts": [a.to_dict() for a in document.accounts]})


@finance_bp.post("/accounts")
def create_account():
    data = request.get_json(silent=True) or {}
    account = get_document_store().apply(finance_service.create_account, data)
    return jsonify({"account": account.to_dict()}), 201


@finance_bp.patch("/accounts/<account_id>")
def update_account(account_id: str):
    data = request.get_json(silent=True) or {}
    account = get_document_store().apply(finance_service.update_account, account_id, data)
    return jsonify({"account": account.to_dict()})


@finance_bp.delete("/accounts/<account_id>")
def delete_account(account_id: str):
    removal = get_document_store().apply(finance_service.delete_account, account_id)
    body = {"deleted": removal.account.to_dict(), "imbalanceWarning": removal.imbalance_warning}
    if removal.imbalance_warning:
        body["warning"] = (
            f"{removal.account.name} had a balance of {as_number(removal.account.balance)}; "
            "the balance sheet is now out of balance by that amount."
        )
    return jsonify(body)


@finance_bp.get("/accounting/statements")
def financial_statements():
    statements = reporting_service.financial_statements(get_document_store().snapshot())
    return jsonify(statements.to_dict())
