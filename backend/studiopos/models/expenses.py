from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


EXPENSE_CATEGORIES = ("SUPPLIES", "UTILITIES", "MAINTENANCE", "OTHER")


class Expense(db.Model):
    """Daily discretionary spend (ice, repairs, ...) that feeds net profit."""
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(16), nullable=False, default="OTHER")
    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("expenses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "date": to_utc_z(self.date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
