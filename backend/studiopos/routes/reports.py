# Overview: Flask API routes for reports, the dashboard and the audit trail.

"""
Reporting routes (read-only, any signed-in role).

All date ranges are half-open: from is inclusive, to is exclusive.
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import PosError
from ..services import reporting_service, audit_service
from ..services.criteria import criteria_from_args
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/financial")
@require_auth
def financial_report_route():
    try:
        return jsonify(reporting_service.financial_report(criteria_from_args(request.args)))

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build financial report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/top-products")
@require_auth
def top_products_route():
    try:
        limit = request.args.get("limit", default=10, type=int)
        rows = reporting_service.top_products(criteria_from_args(request.args), limit=limit)
        return jsonify({"items": rows, "count": len(rows)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build top products report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/revenue")
@require_auth
def aggregated_revenue_route():
    """Query params: from, to, period=daily|weekly|monthly|yearly"""
    try:
        period = request.args.get("period", "daily")
        rows = reporting_service.aggregated_revenue(criteria_from_args(request.args), period=period)
        return jsonify({"period": period, "items": rows})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to aggregate revenue")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    return jsonify(reporting_service.dashboard_stats())


@reports_bp.get("/audit-logs")
@require_auth
def audit_logs_route():
    try:
        limit = request.args.get("limit", default=50, type=int)
        entries = audit_service.list_audit_logs(criteria_from_args(request.args), limit=limit)
        return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
