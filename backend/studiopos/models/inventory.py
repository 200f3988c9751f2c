from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


CATEGORY_TYPES = ("STUDIO", "FB")
ADJUSTMENT_TYPES = ("IN", "OUT", "ADJUSTMENT")


class Category(db.Model):
    """Menu grouping; STUDIO for photo sessions, FB for food & beverage."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data with a mutable stock counter.

    STOCK: `stock` is only written by checkout (decrement) and by
    StockAdjustment rows (signed delta). Both paths lock the row and bump
    version_id so concurrent writers cannot lose each other's updates.

    ARCHIVING: Products referenced by orders or adjustments are archived
    (is_archived=True) instead of deleted.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_menu_archived", "is_menu_item", "is_archived"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    # Optional barcode / SKU; NULLs do not collide on the unique index
    sku = db.Column(db.String(64), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in minor units
    price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)  # HPP

    stock = db.Column(db.Integer, nullable=False, default=0)

    is_menu_item = db.Column(db.Boolean, nullable=False, default=True)
    is_archived = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "sku": self.sku,
            "name": self.name,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "stock": self.stock,
            "is_menu_item": self.is_menu_item,
            "is_archived": self.is_archived,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockAdjustment(db.Model):
    """
    Append-only record of manual stock changes (restock, shrinkage, opname).

    `change` is the signed delta actually applied to Product.stock:
    positive for IN and ADJUSTMENT, negative for OUT.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "stock_adjustments"
    __table_args__ = (
        db.Index("ix_stock_adjustments_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    change = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)
    reference = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship("Product", backref=db.backref("stock_adjustments", lazy=True))
    user = db.relationship("User", backref=db.backref("stock_adjustments", lazy=True))

    def to_dict(self, *, expand: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "change": self.change,
            "type": self.type,
            "reason": self.reason,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
        }
        if expand:
            data["product"] = self.product.to_dict() if self.product else None
            data["user"] = self.user.to_dict() if self.user else None
        return data
