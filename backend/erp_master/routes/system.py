# Overview: Flask API routes for health, the raw document, JSON backup, audit trail and settings.

import time

from flask import Blueprint, Response, current_app, jsonify, request

from ..extensions import db
from ..models import AUDIT_DISPLAY_LIMIT, StoredDocument
from ..services import catalog_service, export_service
from ..services.audit_service import append_audit_log, recent_audit_logs
from ..services.document_store import get_document_store
from ..time_utils import utcnow, to_utc_z
from ..validation import ValidationError, to_int


system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        rows = db.session.query(StoredDocument).count()
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "details": {"documents": rows},
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    scheduler = get_document_store().scheduler
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database,
            "mirror": {
                "backend": current_app.config.get("MIRROR_BACKEND"),
                **scheduler.status(),
            },
        },
    }
    return jsonify(body), 200 if healthy else 503


@system_bp.get("/document")
def get_document():
    return jsonify(get_document_store().snapshot().to_dict())


@system_bp.get("/backup")
def export_backup():
    document = get_document_store().snapshot()
    filename = f"erp_master_backup_{utcnow().date().isoformat()}.json"
    return Response(
        export_service.backup_json(document),
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@system_bp.post("/backup")
def restore_backup():
    """Replace the whole document with an uploaded backup (file field or JSON body)."""
    if "file" in request.files:
        raw = request.files["file"].read()
    else:
        raw = request.get_json(silent=True)
        if raw is None:
            raise ValidationError("Upload a backup file or send the document as JSON")

    document = export_service.parse_backup(raw)
    append_audit_log(document, "Data Restore", "System data restored from backup")
    get_document_store().replace(document)
    return jsonify({"restored": True, "lastModified": document.last_modified})


@system_bp.get("/audit-logs")
def list_audit_logs():
    raw_limit = request.args.get("limit")
    limit = to_int(raw_limit, "limit") if raw_limit else AUDIT_DISPLAY_LIMIT
    document = get_document_store().snapshot()
    logs = recent_audit_logs(document, limit)
    return jsonify({"audit_logs": [log.to_dict() for log in logs], "total": len(document.audit_logs)})


@system_bp.get("/settings")
def get_settings():
    return jsonify({"settings": get_document_store().snapshot().settings.to_dict()})


@system_bp.patch("/settings")
def update_settings():
    data = request.get_json(silent=True) or {}
    settings = get_document_store().apply(catalog_service.update_settings, data)
    return jsonify({"settings": settings})
