# Overview: Flask API routes for the shift ledger; parses input and returns JSON responses.

# backend/studiopos/routes/shifts.py
"""
Shift API Routes

Lifecycle: open -> close (immutable once closed). One shift is open at a
time for the whole studio; any signed-in user may open or close it.
Listings and reconciliation summaries are admin-only.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services import shift_service, reporting_service
from ..services.criteria import criteria_from_args
from ..decorators import require_auth, require_admin


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.get("/current")
@require_auth
def current_shift_route():
    shift = shift_service.get_open_shift()
    return jsonify({"shift": shift.to_dict() if shift else None})


@shifts_bp.get("/last")
@require_auth
def last_shift_route():
    shift = shift_service.get_last_shift(g.session_context.user_id)
    return jsonify({"shift": shift.to_dict() if shift else None})


@shifts_bp.post("/open")
@require_auth
def open_shift_route():
    """
    Open the drawer.

    Request body:
    {
        "initial_cash_cents": 50000
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        shift = shift_service.open_shift(g.session_context, data.get("initial_cash_cents", 0))
        return jsonify({"shift": shift.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Failed to open shift."}), 500


@shifts_bp.post("/close")
@require_auth
def close_shift_route():
    """
    Close the open shift.

    Request body:
    {
        "reported_cash_cents": 325000,
        "notes": "optional"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        if "reported_cash_cents" not in data:
            return jsonify({"error": "reported_cash_cents required"}), 400

        shift = shift_service.close_shift(
            g.session_context,
            data.get("reported_cash_cents"),
            notes=data.get("notes"),
        )
        return jsonify({"shift": shift.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Failed to close shift."}), 500


@shifts_bp.get("")
@require_auth
@require_admin
def list_shifts_route():
    """
    Query params:
    - from, to: ISO-8601, half-open window on start_time
    - status: OPEN | CLOSED
    - limit: int (default 50, max 100)
    """
    try:
        criteria = criteria_from_args(request.args)
        limit = request.args.get("limit", default=50, type=int)
        shifts = shift_service.list_shifts(criteria, status=request.args.get("status"), limit=limit)
        return jsonify({"shifts": [s.to_dict() for s in shifts], "count": len(shifts)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list shifts")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/<int:shift_id>/summary")
@require_auth
@require_admin
def shift_summary_route(shift_id: int):
    try:
        return jsonify(reporting_service.shift_summary(shift_id))

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to summarize shift %s", shift_id)
        return jsonify({"error": "Internal server error"}), 500
