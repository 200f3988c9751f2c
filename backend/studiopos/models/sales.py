from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ORDER_STATUSES = ("COMPLETED", "VOID")
PAYMENT_METHODS = ("CASH", "QRIS", "TRANSFER")


class Order(db.Model):
    """
    Completed checkout.

    LIFECYCLE:
    - COMPLETED: created by checkout only
    - VOID: soft-cancel by an admin; items, payments and stock are untouched

    Amounts are stored in minor units. total_amount_cents equals
    subtotal_amount_cents - discount_amount_cents at creation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    # Cashier who handled it
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=True, index=True)

    subtotal_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="COMPLETED", index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    shift = db.relationship("Shift", backref=db.backref("orders", lazy=True))
    items = db.relationship("OrderItem", back_populates="order", lazy=True, cascade="all, delete-orphan")
    payments = db.relationship("Payment", back_populates="order", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, *, expand: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "user_id": self.user_id,
            "shift_id": self.shift_id,
            "subtotal_amount_cents": self.subtotal_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "discount_percent": self.discount_percent,
            "total_amount_cents": self.total_amount_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if expand:
            data["user"] = self.user.to_dict() if self.user else None
            data["items"] = [item.to_dict(expand=True) for item in self.items]
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class OrderItem(db.Model):
    """
    Line on an order.

    price_at_sale is what the cashier charged; cost_at_sale is the product's
    cost price at the moment of sale (COGS basis). Neither changes afterwards.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)
    cost_at_sale_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.price_at_sale_cents * self.quantity

    @property
    def line_cost_cents(self) -> int:
        return self.cost_at_sale_cents * self.quantity

    def to_dict(self, *, expand: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price_at_sale_cents": self.price_at_sale_cents,
            "cost_at_sale_cents": self.cost_at_sale_cents,
            "line_total_cents": self.line_total_cents,
        }
        if expand:
            data["product"] = self.product.to_dict() if self.product else None
        return data


class Payment(db.Model):
    """
    Tender recorded against an order.

    TENDER TYPES:
    - CASH: Physical currency (counts towards the drawer)
    - QRIS: QR code payment
    - TRANSFER: Bank transfer

    Several payments per order support split bills.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    method = db.Column(db.String(16), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    order = db.relationship("Order", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "method": self.method,
            "amount_cents": self.amount_cents,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceSequence(db.Model):
    """
    Per-day invoice counters.

    WHY: Invoice numbers are INV-YYYYMMDD-NNNN; the row for a day is locked
    while the next number is taken so two checkouts never share a number.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    day_key = db.Column(db.String(8), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
