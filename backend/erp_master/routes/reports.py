# Overview: Flask API routes for daily closing, period summaries and the dashboard.

from flask import Blueprint, current_app, jsonify, request

from ..services import reporting_service
from ..services.document_store import get_document_store


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/z-report")
def z_report():
    report = reporting_service.z_report(
        get_document_store().snapshot(),
        utc_offset_minutes=current_app.config["BUSINESS_UTC_OFFSET_MINUTES"],
    )
    return jsonify(report.to_dict())


@reports_bp.get("/summary")
def period_summary():
    """
    Query params:
        period: 6h | daily | weekly | monthly | yearly | custom (default weekly)
        start, end: ISO dates for custom ranges (end date inclusive)
    """
    summary = reporting_service.period_summary(
        get_document_store().snapshot(),
        request.args.get("period") or reporting_service.PERIOD_WEEKLY,
        start=request.args.get("start"),
        end=request.args.get("end"),
        utc_offset_minutes=current_app.config["BUSINESS_UTC_OFFSET_MINUTES"],
    )
    return jsonify(summary.to_dict())


@reports_bp.get("/dashboard")
def dashboard():
    return jsonify(reporting_service.dashboard(get_document_store().snapshot()))
