# Overview: Flask API routes for the product catalog, including CSV/Excel exchange.

from flask import Blueprint, Response, jsonify, request

from ..services import catalog_service, export_service
from ..services.audit_service import append_audit_log
from ..services.document_store import get_document_store
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _export_products(document):
    """Audit-only handler: record that the catalog was exported."""
    draft = document.clone()
    append_audit_log(draft, "Export Products", "Exported product catalog for Excel")
    return draft, export_service.products_csv(document)


@products_bp.get("")
def list_products():
    document = get_document_store().snapshot()
    products = catalog_service.search_products(document, request.args.get("q"))
    return jsonify({"products": [p.to_dict() for p in products]})


@products_bp.post("")
def create_product():
    data = request.get_json(silent=True) or {}
    product = get_document_store().apply(catalog_service.create_product, data)
    return jsonify({"product": product.to_dict()}), 201


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    product = get_document_store().snapshot().find_product(product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return jsonify({"product": product.to_dict()})


@products_bp.patch("/<product_id>")
def update_product(product_id: str):
    data = request.get_json(silent=True) or {}
    product = get_document_store().apply(catalog_service.update_product, product_id, data)
    return jsonify({"product": product.to_dict()})


@products_bp.delete("/<product_id>")
def delete_product(product_id: str):
    product = get_document_store().apply(catalog_service.delete_product, product_id)
    return jsonify({"deleted": product.to_dict()})


@products_bp.get("/export.csv")
def export_products():
    content = get_document_store().apply(_export_products)
    filename = f"inventory_master_{utcnow().date().isoformat()}.csv"
    return Response(
        content,
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@products_bp.post("/import")
def import_products():
    if "file" not in request.files:
        raise ValidationError("file is required")

    upload = request.files["file"]
    try:
        products = export_service.parse_product_upload(upload.filename, upload.stream)
    except ValidationError:
        raise
    except Exception:
        raise ValidationError("Failed to parse upload")

    imported = get_document_store().apply(catalog_service.import_products, products)
    return jsonify({"imported": len(imported), "products": [p.to_dict() for p in imported]}), 201
