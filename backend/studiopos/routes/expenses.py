# Overview: Flask API routes for operating expenses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services import expense_service
from ..services.criteria import criteria_from_args
from ..decorators import require_auth


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    try:
        expenses = expense_service.list_expenses(criteria_from_args(request.args))
        return jsonify({"items": [e.to_dict() for e in expenses], "count": len(expenses)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code


@expenses_bp.post("")
@require_auth
def add_expense_route():
    """
    Admin only (checked by the service).

    Request body:
    {
        "description": "Ice",
        "amount_cents": 1500000,
        "category": "SUPPLIES" | "UTILITIES" | "MAINTENANCE" | "OTHER",
        "date": "2024-05-01",
        "notes": "optional"
    }
    """
    try:
        expense = expense_service.add_expense(g.session_context, request.get_json(silent=True))
        return jsonify({"expense": expense.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.patch("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    try:
        expense = expense_service.update_expense(g.session_context, expense_id, request.get_json(silent=True))
        return jsonify({"expense": expense.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update expense %s", expense_id)
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(g.session_context, expense_id)
        return jsonify({"success": True})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete expense %s", expense_id)
        return jsonify({"error": "Internal server error"}), 500
