# Overview: Flask API routes for order (invoice) administration. Admin only.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services import orders_service, reporting_service
from ..services.criteria import criteria_from_args
from ..decorators import require_auth, require_admin


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
@require_admin
def list_orders_route():
    """
    Query params:
    - from, to: ISO-8601 (optional, half-open on created_at)
    - limit: int (default 50, max 100)
    """
    try:
        criteria = criteria_from_args(request.args)
        limit = request.args.get("limit", default=50, type=int)
        orders = orders_service.list_orders(g.session_context, criteria, limit=limit)
        return jsonify({"orders": [o.to_dict(expand=True) for o in orders], "count": len(orders)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
@require_admin
def get_order_route(order_id: int):
    try:
        order = orders_service.get_order(g.session_context, order_id)
        return jsonify({"order": order.to_dict(expand=True)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.get("/<int:order_id>/margin")
@require_auth
@require_admin
def order_margin_route(order_id: int):
    try:
        return jsonify(reporting_service.order_margin(order_id))

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.post("/<int:order_id>/void")
@require_auth
@require_admin
def void_order_route(order_id: int):
    try:
        order = orders_service.void_order(g.session_context, order_id)
        return jsonify({"success": True, "order": order.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to void order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_admin
def delete_order_route(order_id: int):
    try:
        orders_service.delete_order(g.session_context, order_id)
        return jsonify({"success": True})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500
