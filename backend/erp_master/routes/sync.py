# Overview: Flask API routes for the remote mirror: status, manual push/pull and connection test.

from flask import Blueprint, current_app, jsonify

from ..services.audit_service import append_audit_log
from ..services.document_store import get_document_store


sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")


def _log(action: str, details: str):
    def handler(document):
        draft = document.clone()
        append_audit_log(draft, action, details)
        return draft, None
    return handler


@sync_bp.get("/status")
def status():
    store = get_document_store()
    sync = store.snapshot().settings.sync_settings
    return jsonify({
        "backend": current_app.config.get("MIRROR_BACKEND"),
        "autoSyncCloud": sync.auto_sync_cloud,
        "lastSyncedAt": sync.last_synced_at or None,
        "dataVersion": sync.data_version,
        **store.scheduler.status(),
    })


@sync_bp.post("/push")
def push():
    store = get_document_store()
    remote_id = store.push_now()
    # The audit entry itself is a change; it reaches the mirror on the next push
    store.apply(_log("Cloud Push", "Manual sync successful"))
    return jsonify({"pushed": True, "remoteId": remote_id, **store.scheduler.status()})


@sync_bp.post("/pull")
def pull():
    store = get_document_store()
    document = store.pull()
    if document is None:
        return jsonify({"pulled": False, "error": "The mirror holds no document yet"}), 404
    store.apply(_log("Cloud Pull", "State restored from cloud"))
    return jsonify({"pulled": True, "lastModified": document.last_modified})


@sync_bp.post("/test")
def test_connection():
    backend = get_document_store().test_mirror()
    return jsonify({"ok": True, "backend": backend})
