# Overview: Service-layer operations for the stock adjustment ledger.

"""
Stock Adjustment Ledger

Manual stock movements outside of checkout:
- IN:         restock, stock += change
- OUT:        shrinkage/waste, stock -= change
- ADJUSTMENT: opname correction, stock += change

`change` from the caller is always a positive magnitude; the signed delta
is derived from the type and stored on the StockAdjustment row. Stock is
not clamped at zero.
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Product, StockAdjustment, ADJUSTMENT_TYPES
from ..validation import require_choice, require_positive_int
from .audit_service import record_audit
from .concurrency import lock_for_update, run_with_retry
from .criteria import ListCriteria, apply_criteria
from .permission_service import require_admin


def signed_delta(adjustment_type: str, change: int) -> int:
    return -change if adjustment_type == "OUT" else change


def adjust_stock(
    actor,
    product_id,
    change,
    type,
    reason: str | None = None,
    reference: str | None = None,
) -> StockAdjustment:
    """
    Apply a manual stock movement.

    Raises:
        ValidationError: change not a positive integer, or unknown type
        NotFoundError: product does not exist
    """
    change = require_positive_int(change, "change")
    adjustment_type = require_choice(type, "type", ADJUSTMENT_TYPES)
    product_id = require_positive_int(product_id, "product_id")
    delta = signed_delta(adjustment_type, change)

    reason = (reason or "").strip() or None
    reference = (reference or "").strip() or None

    def _op() -> StockAdjustment:
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found")

        stock_before = product.stock
        product.stock = stock_before + delta

        adjustment = StockAdjustment(
            product_id=product.id,
            user_id=actor.user_id,
            change=delta,
            type=adjustment_type,
            reason=reason,
            reference=reference,
        )
        db.session.add(adjustment)
        db.session.flush()

        record_audit(
            user_id=actor.user_id,
            action="ADJUST_STOCK",
            entity="PRODUCT",
            entity_id=product.id,
            old_value={"stock": stock_before},
            new_value={
                "stockBefore": stock_before,
                "stockAfter": product.stock,
                "adjustmentId": adjustment.id,
                "change": delta,
                "type": adjustment_type,
                "reason": reason,
                "reference": reference,
                "performedByRole": actor.role,
            },
        )

        db.session.commit()
        return adjustment

    adjustment = run_with_retry(_op)
    current_app.logger.info(
        "Stock %s for product %s by user %s: %+d",
        adjustment_type, product_id, actor.user_id, delta,
    )
    return adjustment


def list_stock_adjustments(
    criteria: ListCriteria | None = None,
    *,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Paginated adjustment history, newest first; open to every role."""
    limit = min(max(limit or 20, 1), 100)
    page = max(page or 1, 1)

    query = apply_criteria(
        db.session.query(StockAdjustment),
        criteria,
        date_column=StockAdjustment.created_at,
        product_column=StockAdjustment.product_id,
    )

    total = query.count()
    total_pages = (total + limit - 1) // limit if total > 0 else 1

    rows = (
        query.order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "items": [a.to_dict(expand=True) for a in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_stock_adjustments_admin(actor, criteria: ListCriteria | None = None, limit: int = 100) -> list[StockAdjustment]:
    require_admin(actor)
    limit = min(max(limit or 100, 1), 100)
    query = apply_criteria(
        db.session.query(StockAdjustment),
        criteria,
        date_column=StockAdjustment.created_at,
        product_column=StockAdjustment.product_id,
    )
    return (
        query.order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc())
        .limit(limit)
        .all()
    )
