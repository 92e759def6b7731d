# Overview: Flask API routes for stock purchases and loss adjustments.

from flask import Blueprint, current_app, jsonify, request

from ..services import inventory_service
from ..services.document_store import get_document_store
from ..validation import as_number


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/stock-in")
def stock_in():
    """
    Receive purchased stock.

    Body: {"productId", "quantity", "unitCost", "accountId", "supplierId"?, "supplierName"?}
    """
    data = request.get_json(silent=True) or {}
    receipt = get_document_store().apply(
        inventory_service.stock_in,
        data.get("productId"),
        data.get("quantity"),
        data.get("unitCost"),
        data.get("accountId"),
        supplier_id=data.get("supplierId") or None,
        supplier_name=data.get("supplierName") or None,
        funds_policy=current_app.config["PURCHASE_FUNDS_POLICY"],
    )
    return jsonify({
        "adjustment": receipt.adjustment.to_dict(),
        "totalCost": as_number(receipt.total_cost),
        "insufficientFunds": receipt.insufficient_funds,
    }), 201


@inventory_bp.get("/adjustments")
def list_adjustments():
    adjustments = inventory_service.list_adjustments(
        get_document_store().snapshot(),
        adjustment_type=request.args.get("type"),
    )
    return jsonify({"adjustments": [a.to_dict() for a in adjustments]})


@inventory_bp.post("/adjustments")
def create_adjustment():
    """Body: {"productId", "quantity", "type": DAMAGE|LOST|EXPIRED|RETURN_TO_VENDOR, "reason"}"""
    data = request.get_json(silent=True) or {}
    adjustment = get_document_store().apply(
        inventory_service.record_stock_loss,
        data.get("productId"),
        data.get("quantity"),
        data.get("type"),
        data.get("reason") or "",
    )
    return jsonify({"adjustment": adjustment.to_dict()}), 201


@inventory_bp.delete("/adjustments/<adjustment_id>")
def reverse_adjustment(adjustment_id: str):
    adjustment = get_document_store().apply(
        inventory_service.reverse_stock_adjustment,
        adjustment_id,
        cost_basis=current_app.config["LOSS_REVERSAL_COST_BASIS"],
    )
    return jsonify({"reversed": adjustment.to_dict()})
