# Overview: Flask API routes for the register screen and checkout.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services import checkout_service
from ..decorators import require_auth


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.get("/data")
@require_auth
def pos_data_route():
    """Categories and sellable products for the register grid."""
    return jsonify(checkout_service.get_pos_data())


@pos_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Complete a sale against the open shift.

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2, "price_cents": 10000}],
        "payments": [{"method": "CASH", "amount_cents": 20000}],
        "total_amount_cents": 20000,     (optional, must match)
        "discount_cents": 0,             (optional)
        "discount_percent": 0            (optional)
    }

    Returns 201 with order_id, invoice_number, invoice_and_date, change_cents.
    Persistence failures return 500 {"error": "Transaction failed."}.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = checkout_service.process_transaction(
            g.session_context,
            data.get("items"),
            data.get("payments"),
            total_amount_cents=data.get("total_amount_cents"),
            discount_cents=data.get("discount_cents", 0),
            discount_percent=data.get("discount_percent", 0),
        )
        return jsonify(result), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "Transaction failed."}), 500
