# Overview: Flask API routes for the product catalog and stock adjustments.

# backend/studiopos/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Product listing, stock adjustment and the public adjustment history are
  open to every role (cashiers restock and record waste)
- Catalog mutations, categories, menu items and the full adjustment history
  are ADMIN/SUPERADMIN only
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services import inventory_service, products_service
from ..services.criteria import criteria_from_args
from ..decorators import require_auth, require_admin

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _bool_arg(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


@inventory_bp.get("/products")
@require_auth
def list_products_route():
    """
    Query params:
    - is_menu_item: bool (optional)
    - include_archived: bool (default false)
    """
    products = products_service.list_products(
        is_menu_item=_bool_arg("is_menu_item"),
        include_archived=bool(_bool_arg("include_archived")),
    )
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@inventory_bp.get("/menu-items")
@require_auth
@require_admin
def menu_items_route():
    try:
        items = products_service.get_menu_items(g.session_context)
        return jsonify({
            "items": [{**p.to_dict(), "category": p.category.to_dict() if p.category else None} for p in items],
            "count": len(items),
        })
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.get("/categories")
@require_auth
@require_admin
def list_categories_route():
    categories = products_service.list_categories()
    return jsonify({"items": [c.to_dict() for c in categories], "count": len(categories)})


@inventory_bp.post("/products")
@require_auth
@require_admin
def add_product_route():
    """
    Request body:
    {
        "category_id": 1,
        "name": "Iced Latte",
        "price_cents": 2500000,
        "cost_price_cents": 1200000,   (optional)
        "sku": "FB-LATTE",              (optional)
        "stock": 20,                    (optional)
        "is_menu_item": true            (optional)
    }
    """
    try:
        product = products_service.add_product(g.session_context, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add product")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/products/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    try:
        product = products_service.update_product(g.session_context, product_id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/products/<int:product_id>/toggle-menu-item")
@require_auth
@require_admin
def toggle_menu_item_route(product_id: int):
    """Request body: {"is_menu_item": true}"""
    try:
        data = request.get_json(silent=True) or {}
        product = products_service.toggle_menu_item(g.session_context, product_id, data.get("is_menu_item"))
        return jsonify({"product": product.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle menu item %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/products/<int:product_id>/archive")
@require_auth
@require_admin
def archive_product_route(product_id: int):
    try:
        product = products_service.archive_product(g.session_context, product_id)
        return jsonify({"product": product.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to archive product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/products/<int:product_id>/unarchive")
@require_auth
@require_admin
def unarchive_product_route(product_id: int):
    try:
        product = products_service.unarchive_product(g.session_context, product_id)
        return jsonify({"product": product.to_dict()})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to unarchive product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/products/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(g.session_context, product_id)
        return jsonify({"success": True})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/adjust-stock")
@require_auth
def adjust_stock_route():
    """
    Record a manual stock movement (any role).

    Request body:
    {
        "product_id": 1,
        "change": 5,                    (positive magnitude)
        "type": "IN" | "OUT" | "ADJUSTMENT",
        "reason": "weekly restock",     (optional)
        "reference": "PO-123"           (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        adjustment = inventory_service.adjust_stock(
            g.session_context,
            data.get("product_id"),
            data.get("change"),
            data.get("type"),
            reason=data.get("reason"),
            reference=data.get("reference"),
        )
        return jsonify({"success": True, "adjustment": adjustment.to_dict(expand=True)}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/adjustments")
@require_auth
@require_admin
def list_adjustments_route():
    """
    Query params:
    - product_id: int (optional)
    - from, to: ISO-8601 (optional, half-open)
    - limit: int (default 100, max 100)
    """
    try:
        criteria = criteria_from_args(request.args)
        limit = request.args.get("limit", default=100, type=int)
        rows = inventory_service.list_stock_adjustments_admin(g.session_context, criteria, limit=limit)
        return jsonify({"items": [a.to_dict(expand=True) for a in rows], "count": len(rows)})

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list stock adjustments")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/adjustments-public")
@require_auth
def list_adjustments_public_route():
    """
    Paginated history for every role.

    Query params:
    - product_id, from, to (optional)
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    try:
        criteria = criteria_from_args(request.args)
        page = request.args.get("page", default=1, type=int)
        limit = request.args.get("limit", default=20, type=int)
        return jsonify(inventory_service.list_stock_adjustments(criteria, page=page, limit=limit))

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list stock adjustments")
        return jsonify({"error": "Internal server error"}), 500
