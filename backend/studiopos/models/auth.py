from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ROLES = ("CASHIER", "ADMIN", "SUPERADMIN")
ADMIN_ROLES = ("ADMIN", "SUPERADMIN")


class User(db.Model):
    """
    Staff account.

    Every order, shift, stock adjustment and expense is attributed to a user.
    Role is a single enum value; ADMIN and SUPERADMIN share back-office rights.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="CASHIER", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
