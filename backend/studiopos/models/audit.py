from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Append-only audit trail of mutating actions.

    old_value / new_value are JSON snapshots of entity state (opaque text).
    user_id is nullable so entries survive for system actions.

    IMMUTABLE: Records are never updated or deleted by the application.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_entity_ref", "entity", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    action = db.Column(db.String(32), nullable=False, index=True)  # CREATE, UPDATE, DELETE, ADJUST_STOCK, ...
    entity = db.Column(db.String(32), nullable=False, index=True)  # ORDER, PRODUCT, SHIFT, EXPENSE
    entity_id = db.Column(db.Integer, nullable=True)

    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User", backref=db.backref("audit_logs", lazy=True))

    @staticmethod
    def _load(raw: str | None):
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return raw

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "old_value": self._load(self.old_value),
            "new_value": self._load(self.new_value),
            "timestamp": to_utc_z(self.timestamp),
        }
