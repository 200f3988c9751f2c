# backend/studiopos/services/products_service.py
"""
Product Catalog Service

Back-office management of categories and products. All mutations are
ADMIN/SUPERADMIN only and write an audit entry with before/after snapshots.

DELETION POLICY:
- A product referenced by an order line or a stock adjustment cannot be
  hard-deleted; archive it instead (archiving always succeeds)
- Archived products disappear from the register but keep their history
"""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError
from ..extensions import db
from ..models import Category, OrderItem, Product, StockAdjustment, CATEGORY_TYPES
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    require_choice,
    ValidationError,
    ConflictError,
)
from .audit_service import record_audit
from .permission_service import require_admin

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"category_id", "sku", "name", "price_cents", "cost_price_cents", "stock", "is_menu_item"},
    required_on_create={"category_id", "name", "price_cents"},
)

# Stock is only writable at creation; afterwards it moves through adjustments
PRODUCT_MUTABLE_FIELDS = {"category_id", "sku", "name", "price_cents", "cost_price_cents", "is_menu_item"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _get_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p


def _require_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise ValidationError("Category not found")
    return category


def _ensure_sku_free(sku: str | None, *, exclude_id: int | None = None) -> None:
    if sku is None:
        return
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists.")


def _commit_product() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent writer took the SKU between the check and the commit
        db.session.rollback()
        raise ConflictError("SKU already exists.")


def list_products(*, is_menu_item: bool | None = None, include_archived: bool = False) -> list[Product]:
    """Catalog listing for any authenticated user."""
    query = db.session.query(Product)
    if is_menu_item is not None:
        query = query.filter(Product.is_menu_item.is_(is_menu_item))
    if not include_archived:
        query = query.filter(Product.is_archived.is_(False))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_menu_items(actor) -> list[Product]:
    require_admin(actor)
    return (
        db.session.query(Product)
        .filter(Product.is_menu_item.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def create_category(name: str, type: str) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    category = Category(name=name, type=require_choice(type, "type", CATEGORY_TYPES))
    db.session.add(category)
    db.session.commit()
    return category


def add_product(actor, payload: dict) -> Product:
    """
    Create a product from a client payload.

    Raises:
        AuthorizationError: caller is not an admin
        ValidationError: payload fails policy or business rules
        ConflictError: SKU already taken
    """
    require_admin(actor)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _require_category(patch["category_id"])
    _ensure_sku_free(patch.get("sku"))

    p = Product(
        category_id=patch["category_id"],
        stock=patch.get("stock") or 0,
        cost_price_cents=0,
        is_menu_item=True,
        is_archived=False,
    )
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="CREATE",
        entity="PRODUCT",
        entity_id=p.id,
        new_value=p.to_dict(),
    )
    _commit_product()
    return p


def update_product(actor, product_id: int, payload: dict) -> Product:
    """Partial update; stock is not writable here."""
    require_admin(actor)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    if "stock" in patch:
        raise ValidationError("stock cannot be edited directly; use a stock adjustment")
    enforce_rules_product(patch)

    p = _get_product(product_id)
    if "category_id" in patch:
        _require_category(patch["category_id"])
    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_sku_free(patch["sku"], exclude_id=p.id)

    before = p.to_dict()
    apply_product_patch(p, patch)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="UPDATE",
        entity="PRODUCT",
        entity_id=p.id,
        old_value=before,
        new_value=p.to_dict(),
    )
    _commit_product()
    return p


def toggle_menu_item(actor, product_id: int, is_menu_item) -> Product:
    require_admin(actor)
    if not isinstance(is_menu_item, bool):
        raise ValidationError("is_menu_item must be a boolean")

    p = _get_product(product_id)
    before = p.is_menu_item
    p.is_menu_item = is_menu_item

    record_audit(
        user_id=actor.user_id,
        action="UPDATE",
        entity="PRODUCT",
        entity_id=p.id,
        old_value={"is_menu_item": before},
        new_value={"is_menu_item": is_menu_item},
    )
    db.session.commit()
    return p


def _set_archived(actor, product_id: int, archived: bool) -> Product:
    require_admin(actor)
    p = _get_product(product_id)
    before = p.to_dict()
    p.is_archived = archived
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="ARCHIVE" if archived else "UNARCHIVE",
        entity="PRODUCT",
        entity_id=p.id,
        old_value=before,
        new_value=p.to_dict(),
    )
    db.session.commit()
    return p


def archive_product(actor, product_id: int) -> Product:
    """Soft-delete; allowed regardless of references."""
    return _set_archived(actor, product_id, True)


def unarchive_product(actor, product_id: int) -> Product:
    return _set_archived(actor, product_id, False)


def delete_product(actor, product_id: int) -> None:
    """
    Hard-delete a product that has never been sold or adjusted.

    Raises:
        NotFoundError: product does not exist
        ValidationError: product is referenced by orders or adjustments
    """
    require_admin(actor)
    p = _get_product(product_id)

    sold = db.session.query(func.count(OrderItem.id)).filter(OrderItem.product_id == p.id).scalar()
    if sold:
        raise ValidationError(
            "Product cannot be deleted because it is referenced by existing orders. "
            "Consider archiving or disabling the product instead."
        )

    adjusted = db.session.query(func.count(StockAdjustment.id)).filter(StockAdjustment.product_id == p.id).scalar()
    if adjusted:
        raise ValidationError(
            "Product cannot be deleted because it has stock adjustment history. "
            "Consider archiving or disabling the product instead."
        )

    before = p.to_dict()
    db.session.delete(p)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="DELETE",
        entity="PRODUCT",
        entity_id=product_id,
        old_value=before,
    )
    db.session.commit()
