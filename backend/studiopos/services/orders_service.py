# Overview: Service-layer operations for order administration (admin only).

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import selectinload

from ..errors import NotFoundError, PreconditionError
from ..extensions import db
from ..models import Order, OrderItem
from .audit_service import record_audit
from .criteria import ListCriteria, apply_criteria
from .permission_service import require_admin


def list_orders(actor, criteria: ListCriteria | None = None, limit: int = 50) -> list[Order]:
    """Newest first, with cashier, items (with product) and payments loaded."""
    require_admin(actor)
    limit = min(max(limit or 50, 1), 100)
    query = (
        db.session.query(Order)
        .options(
            selectinload(Order.user),
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.payments),
        )
    )
    query = apply_criteria(query, criteria, date_column=Order.created_at)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def get_order(actor, order_id: int) -> Order:
    require_admin(actor)
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def void_order(actor, order_id: int) -> Order:
    """
    Mark a completed order VOID.

    Items, payments and product stock are left untouched; a void only
    removes the order from revenue reporting.
    """
    order = get_order(actor, order_id)
    if order.status == "VOID":
        raise PreconditionError("Order is already void")

    before = {"status": order.status, "total": order.total_amount_cents}
    order.status = "VOID"
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="UPDATE",
        entity="ORDER",
        entity_id=order.id,
        old_value=before,
        new_value={"status": "VOID"},
    )
    db.session.commit()
    current_app.logger.info("Order %s voided by user %s", order.invoice_number, actor.user_id)
    return order


def delete_order(actor, order_id: int) -> None:
    """Hard-delete an order with its payments and items. Stock is not restored."""
    order = get_order(actor, order_id)
    snapshot = {"invoice": order.invoice_number, "total": order.total_amount_cents}

    # items and payments go with the order (delete-orphan cascade)
    db.session.delete(order)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="DELETE",
        entity="ORDER",
        entity_id=order_id,
        old_value=snapshot,
    )
    db.session.commit()
    current_app.logger.info("Order %s deleted by user %s", snapshot["invoice"], actor.user_id)
