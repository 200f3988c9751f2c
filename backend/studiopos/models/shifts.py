from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SHIFT_STATUSES = ("OPEN", "CLOSED")


class Shift(db.Model):
    """
    Cash-drawer session.

    LIFECYCLE:
    - OPEN: checkout is allowed; exactly one OPEN shift may exist system-wide
    - CLOSED: terminal; reported cash is the authoritative drawer count

    The single-open invariant is a unique partial index over status
    restricted to OPEN rows, so a racing second open fails at insert time.
    Any user may close the open shift, not only the one who opened it.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index(
            "uq_shifts_single_open",
            "status",
            unique=True,
            sqlite_where=db.text("status = 'OPEN'"),
            postgresql_where=db.text("status = 'OPEN'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    closed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="OPEN")

    start_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    # Cash tracking (minor units)
    initial_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    reported_cash_cents = db.Column(db.Integer, nullable=True)  # Physical count at close

    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("shifts", lazy=True))
    closed_by = db.relationship("User", foreign_keys=[closed_by_user_id])
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "closed_by_user_id": self.closed_by_user_id,
            "status": self.status,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
            "initial_cash_cents": self.initial_cash_cents,
            "reported_cash_cents": self.reported_cash_cents,
            "notes": self.notes,
            "version_id": self.version_id,
        }
