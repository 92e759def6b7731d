# Overview: Maps service exceptions to JSON error responses for every blueprint.

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException

from ..validation import ValidationError, ConflictError, NotFoundError
from ..services.sales_service import SaleError
from ..services.debt_service import DebtPaymentError
from ..services.inventory_service import InventoryError
from ..services.finance_service import FinanceError
from ..services.catalog_service import CatalogError
from ..services.reporting_service import ReportError
from ..services.document_store import DocumentError
from ..services.mirror_service import (
    MirrorError,
    MirrorNotConfigured,
)


# Business rule rejections: the request was understood but refused
BUSINESS_ERRORS = (
    SaleError,
    DebtPaymentError,
    InventoryError,
    FinanceError,
    CatalogError,
    ReportError,
    DocumentError,
)


def _body(error: Exception) -> dict:
    body = {"error": str(error)}
    details = getattr(error, "details", None)
    if details:
        body["details"] = details
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return jsonify(_body(e)), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return jsonify({"error": str(e)}), 409

    for error_class in BUSINESS_ERRORS:
        app.register_error_handler(error_class, lambda e: (jsonify(_body(e)), 400))

    @app.errorhandler(MirrorError)
    def handle_mirror(e):
        status = 400 if isinstance(e, MirrorNotConfigured) else 502
        body = _body(e)
        body["kind"] = type(e).__name__
        return jsonify(body), status

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
