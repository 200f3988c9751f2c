"""
Shift Ledger Service

WHY: Checkout is gated behind an explicit "drawer is open" state, and every
drawer session ends with a recorded physical cash count.

DESIGN PRINCIPLES:
- One OPEN shift system-wide (not per cashier, not per register)
- Any user may close the open shift, including one opened by someone else
- Shifts are immutable once closed; there is no reopen path
- Reported cash is stored as-is; expected cash and variance are computed
  on read by the reporting layer, never enforced at close
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Shift
from ..validation import require_amount
from ..time_utils import utcnow
from .audit_service import record_audit
from .concurrency import lock_for_update, run_with_retry
from .criteria import ListCriteria, apply_criteria


def get_open_shift() -> Shift | None:
    """The single open shift, or None. Checkout uses this as its gate."""
    return (
        db.session.query(Shift)
        .filter_by(status="OPEN")
        .order_by(Shift.start_time.desc())
        .first()
    )


def get_last_shift(user_id: int) -> Shift | None:
    """Most recent shift opened by user_id, any status."""
    return (
        db.session.query(Shift)
        .filter_by(user_id=user_id)
        .order_by(Shift.start_time.desc(), Shift.id.desc())
        .first()
    )


def get_shift(shift_id: int) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")
    return shift


def open_shift(actor, initial_cash_cents) -> Shift:
    """
    Open the drawer.

    Args:
        actor: SessionContext of the caller (any role)
        initial_cash_cents: Starting float in the drawer

    Raises:
        ValidationError: negative or non-integer float
        ConflictError: a shift is already open (a PreconditionError)
    """
    initial_cash_cents = require_amount(initial_cash_cents, "initial_cash_cents")

    def _op() -> Shift:
        existing = lock_for_update(db.session.query(Shift).filter_by(status="OPEN")).first()
        if existing:
            raise ConflictError("A shift is already open.", details={"shift_id": existing.id})

        shift = Shift(
            user_id=actor.user_id,
            status="OPEN",
            initial_cash_cents=initial_cash_cents,
            start_time=utcnow(),
        )
        db.session.add(shift)
        try:
            db.session.flush()
        except IntegrityError:
            # Lost the race against a concurrent open; the partial index caught it
            db.session.rollback()
            raise ConflictError("A shift is already open.")

        record_audit(
            user_id=actor.user_id,
            action="OPEN_SHIFT",
            entity="SHIFT",
            entity_id=shift.id,
            new_value={"status": "OPEN", "initial_cash_cents": initial_cash_cents},
        )

        db.session.commit()
        return shift

    shift = run_with_retry(_op)
    current_app.logger.info("Shift %s opened by user %s", shift.id, actor.user_id)
    return shift


def close_shift(actor, reported_cash_cents, notes: str | None = None) -> Shift:
    """
    Close the open shift with the physically counted cash.

    Raises:
        ValidationError: negative or non-integer count
        NotFoundError: no shift is open
    """
    reported_cash_cents = require_amount(reported_cash_cents, "reported_cash_cents")

    def _op() -> Shift:
        shift = lock_for_update(db.session.query(Shift).filter_by(status="OPEN")).first()
        if shift is None:
            raise NotFoundError("No active shift found.")

        shift.status = "CLOSED"
        shift.end_time = utcnow()
        shift.reported_cash_cents = reported_cash_cents
        shift.closed_by_user_id = actor.user_id
        shift.notes = notes

        record_audit(
            user_id=actor.user_id,
            action="CLOSE_SHIFT",
            entity="SHIFT",
            entity_id=shift.id,
            old_value={"status": "OPEN"},
            new_value={
                "status": "CLOSED",
                "reported_cash_cents": reported_cash_cents,
                "opened_by_user_id": shift.user_id,
            },
        )

        db.session.commit()
        return shift

    shift = run_with_retry(_op)
    current_app.logger.info("Shift %s closed by user %s", shift.id, actor.user_id)
    return shift


def list_shifts(
    criteria: ListCriteria | None = None,
    *,
    status: str | None = None,
    limit: int = 50,
) -> list[Shift]:
    """Shifts newest first; the date window applies to start_time."""
    limit = min(max(limit or 50, 1), 100)
    query = db.session.query(Shift)
    if status:
        query = query.filter(Shift.status == status)
    query = apply_criteria(query, criteria, date_column=Shift.start_time)
    return query.order_by(Shift.start_time.desc(), Shift.id.desc()).limit(limit).all()
