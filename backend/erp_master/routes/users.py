# Overview: Flask API routes for user profiles and switching the acting user.

from flask import Blueprint, jsonify, request

from ..services import catalog_service
from ..services.document_store import get_document_store


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _public(user) -> dict:
    data = user.to_dict()
    data.pop("password", None)
    return data


@users_bp.get("")
def list_users():
    document = get_document_store().snapshot()
    return jsonify({
        "users": [_public(u) for u in document.users],
        "current_user": document.settings.current_user.to_dict(),
    })


@users_bp.post("")
def create_user():
    data = request.get_json(silent=True) or {}
    user = get_document_store().apply(catalog_service.create_user, data)
    return jsonify({"user": _public(user)}), 201


@users_bp.delete("/<user_id>")
def delete_user(user_id: str):
    user = get_document_store().apply(catalog_service.delete_user, user_id)
    return jsonify({"deleted": _public(user)})


@users_bp.post("/<user_id>/switch")
def switch_user(user_id: str):
    current = get_document_store().apply(catalog_service.switch_user, user_id)
    return jsonify({"current_user": current.to_dict()})
