"""
Checkout Service - cart to completed order in one transaction

WHY: A sale touches orders, order items, products (stock), payments and the
audit log. Either all of those rows are written or none of them are.

WORKFLOW:
1. Validate the cart and tenders (no writes yet)
2. Allocate the invoice number
3. Insert the order, then per line lock the product, snapshot cost, decrement stock
4. Insert payments, append the audit entry, commit
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, PersistenceError, PreconditionError, ValidationError
from ..extensions import db
from ..models import Category, Order, OrderItem, Payment, Product, Shift, PAYMENT_METHODS
from ..validation import coerce_int, require_amount, require_choice, require_positive_int
from ..time_utils import utcnow
from .audit_service import record_audit
from .concurrency import lock_for_update, run_with_retry
from .invoice_service import next_invoice_number
from .shift_service import get_open_shift


def get_pos_data() -> dict:
    """
    Everything the register screen needs.

    Categories are de-duplicated by trimmed, case-insensitive name (first
    row wins) and sorted by name; products are non-archived menu items.
    """
    unique: dict[str, Category] = {}
    for category in db.session.query(Category).order_by(Category.id.asc()).all():
        key = (category.name or "").strip().lower()
        if key not in unique:
            unique[key] = category

    categories = sorted(unique.values(), key=lambda c: c.name.lower())

    products = (
        db.session.query(Product)
        .filter(Product.is_menu_item.is_(True), Product.is_archived.is_(False))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )

    return {
        "categories": [c.to_dict() for c in categories],
        "products": [p.to_dict() for p in products],
    }


def _normalize_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Cart is empty")

    lines = []
    for idx, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        lines.append({
            "product_id": require_positive_int(raw.get("product_id"), f"items[{idx}].product_id"),
            "quantity": require_positive_int(raw.get("quantity"), f"items[{idx}].quantity"),
            "price_cents": require_amount(raw.get("price_cents"), f"items[{idx}].price_cents"),
        })
    return lines


def _normalize_payments(payments) -> list[dict]:
    if not isinstance(payments, list) or not payments:
        raise ValidationError("At least one payment is required")

    tenders = []
    for idx, raw in enumerate(payments):
        if not isinstance(raw, dict):
            raise ValidationError(f"payments[{idx}] must be an object")
        tenders.append({
            "method": require_choice(raw.get("method"), f"payments[{idx}].method", PAYMENT_METHODS),
            "amount_cents": require_amount(raw.get("amount_cents"), f"payments[{idx}].amount_cents", allow_zero=False),
        })
    return tenders


def _resolve_discount(subtotal: int, discount_cents, discount_percent) -> tuple[int, int]:
    discount_cents = require_amount(discount_cents or 0, "discount_cents")
    discount_percent = coerce_int(discount_percent or 0, "discount_percent")
    if discount_percent < 0 or discount_percent > 100:
        raise ValidationError("discount_percent must be between 0 and 100")

    # A percentage alone is turned into an amount; an explicit amount wins
    if discount_cents == 0 and discount_percent:
        discount_cents = subtotal * discount_percent // 100

    if discount_cents > subtotal:
        raise ValidationError("Discount cannot exceed subtotal")
    return discount_cents, discount_percent


def process_transaction(
    actor,
    items,
    payments,
    total_amount_cents=None,
    discount_cents=0,
    discount_percent=0,
) -> dict:
    """
    Complete a sale.

    Args:
        actor: SessionContext of the cashier (any role)
        items: [{"product_id", "quantity", "price_cents"}, ...]
        payments: [{"method": CASH|QRIS|TRANSFER, "amount_cents"}, ...]
        total_amount_cents: Optional client-computed total; must match
        discount_cents / discount_percent: Order-level discount

    Returns:
        {"order_id", "invoice_number", "invoice_and_date", "change_cents"}

    Raises:
        PreconditionError: no shift is open
        ValidationError: malformed cart, tenders or totals
        NotFoundError: a cart line references a product that no longer exists
        PersistenceError: the datastore rejected the transaction
    """
    shift = get_open_shift()
    if shift is None:
        raise PreconditionError("No open shift found.")

    lines = _normalize_items(items)
    tenders = _normalize_payments(payments)

    subtotal = sum(line["price_cents"] * line["quantity"] for line in lines)
    discount, percent = _resolve_discount(subtotal, discount_cents, discount_percent)
    expected_total = subtotal - discount

    if total_amount_cents is not None:
        total = require_amount(total_amount_cents, "total_amount_cents")
        if total != expected_total:
            raise ValidationError(
                "Total does not match cart",
                details={"expected_total_cents": expected_total, "total_amount_cents": total},
            )
    else:
        total = expected_total

    tendered = sum(t["amount_cents"] for t in tenders)
    if tendered < total:
        raise ValidationError(
            "Payments do not cover the total",
            details={"total_amount_cents": total, "tendered_cents": tendered},
        )

    shift_id = shift.id

    def _op() -> dict:
        # Re-check under lock; the shift may have closed since the gate above
        locked_shift = lock_for_update(
            db.session.query(Shift).filter_by(id=shift_id, status="OPEN")
        ).first()
        if locked_shift is None:
            raise PreconditionError("No open shift found.")

        now = utcnow()
        invoice_number = next_invoice_number(now)

        order = Order(
            invoice_number=invoice_number,
            user_id=actor.user_id,
            shift_id=shift_id,
            subtotal_amount_cents=subtotal,
            discount_amount_cents=discount,
            discount_percent=percent,
            total_amount_cents=total,
            status="COMPLETED",
            created_at=now,
        )
        db.session.add(order)
        db.session.flush()

        for line in lines:
            product = lock_for_update(
                db.session.query(Product).filter_by(id=line["product_id"])
            ).first()
            if product is None:
                raise NotFoundError(
                    "Product not found",
                    details={"product_id": line["product_id"]},
                )

            db.session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=line["quantity"],
                price_at_sale_cents=line["price_cents"],
                cost_at_sale_cents=product.cost_price_cents,
            ))
            product.stock = product.stock - line["quantity"]
            if product.stock < 0:
                current_app.logger.warning(
                    "Stock for product %s went negative (%s) on %s",
                    product.id, product.stock, invoice_number,
                )

        for tender in tenders:
            db.session.add(Payment(
                order_id=order.id,
                method=tender["method"],
                amount_cents=tender["amount_cents"],
                created_at=now,
            ))

        record_audit(
            user_id=actor.user_id,
            action="CREATE",
            entity="ORDER",
            entity_id=order.id,
            new_value={"invoice": invoice_number, "total": total},
        )

        db.session.commit()
        return {
            "order_id": order.id,
            "invoice_number": invoice_number,
            "invoice_and_date": f"{invoice_number} - {now.strftime('%Y-%m-%d %H:%M:%S')}",
            "change_cents": tendered - total,
        }

    try:
        result = run_with_retry(_op)
    except SQLAlchemyError:
        current_app.logger.exception("Checkout failed for user %s", actor.user_id)
        raise PersistenceError("Transaction failed.")

    current_app.logger.info(
        "Checkout %s completed by user %s (total=%s)",
        result["invoice_number"], actor.user_id, total,
    )
    return result
