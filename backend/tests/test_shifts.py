"""
Shift ledger tests.

Verifies:
- At most one OPEN shift system-wide
- Opening while open is a precondition failure (ConflictError)
- Closing with nothing open is NotFoundError
- Any user may close a shift opened by someone else
- The single-open partial index rejects a second OPEN row at the database level
"""

import pytest
from sqlalchemy.exc import IntegrityError

from studiopos.errors import ConflictError, NotFoundError, PreconditionError, ValidationError
from studiopos.models import AuditLog, Shift
from studiopos.services import shift_service


def test_open_shift_creates_open_row(db_session, cashier):
    shift = shift_service.open_shift(cashier, 50000)

    assert shift.status == "OPEN"
    assert shift.initial_cash_cents == 50000
    assert shift.user_id == cashier.user_id
    assert shift.start_time is not None
    assert shift.end_time is None
    assert shift_service.get_open_shift().id == shift.id


def test_open_while_open_is_rejected(db_session, cashier, admin):
    shift_service.open_shift(cashier, 50000)

    with pytest.raises(ConflictError) as exc:
        shift_service.open_shift(admin, 10000)

    assert isinstance(exc.value, PreconditionError)
    assert exc.value.status_code == 409
    assert db_session.query(Shift).filter_by(status="OPEN").count() == 1


def test_close_without_open_shift_is_not_found(db_session, cashier):
    with pytest.raises(NotFoundError):
        shift_service.close_shift(cashier, 10000)


def test_close_sets_reported_cash_and_end_time(db_session, cashier):
    shift_service.open_shift(cashier, 50000)

    closed = shift_service.close_shift(cashier, 73000, notes="counted twice")

    assert closed.status == "CLOSED"
    assert closed.reported_cash_cents == 73000
    assert closed.end_time is not None
    assert closed.end_time >= closed.start_time
    assert closed.notes == "counted twice"
    assert shift_service.get_open_shift() is None


def test_any_user_may_close_another_users_shift(db_session, cashier, admin):
    shift = shift_service.open_shift(cashier, 0)

    closed = shift_service.close_shift(admin, 0)

    assert closed.id == shift.id
    assert closed.user_id == cashier.user_id
    assert closed.closed_by_user_id == admin.user_id


def test_reopen_after_close_starts_new_shift(db_session, cashier):
    first = shift_service.open_shift(cashier, 100)
    shift_service.close_shift(cashier, 100)

    second = shift_service.open_shift(cashier, 200)

    assert second.id != first.id
    assert shift_service.get_last_shift(cashier.user_id).id == second.id


def test_negative_initial_cash_is_rejected(db_session, cashier):
    with pytest.raises(ValidationError):
        shift_service.open_shift(cashier, -1)
    assert shift_service.get_open_shift() is None


def test_open_and_close_are_audited(db_session, cashier):
    shift = shift_service.open_shift(cashier, 50000)
    shift_service.close_shift(cashier, 50000)

    actions = [
        a.action for a in db_session.query(AuditLog)
        .filter_by(entity="SHIFT", entity_id=shift.id)
        .order_by(AuditLog.id.asc())
    ]
    assert actions == ["OPEN_SHIFT", "CLOSE_SHIFT"]


def test_database_rejects_second_open_row(db_session, cashier_user):
    db_session.add(Shift(user_id=cashier_user.id, status="OPEN", initial_cash_cents=0))
    db_session.commit()

    db_session.add(Shift(user_id=cashier_user.id, status="OPEN", initial_cash_cents=0))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_closed_shifts_do_not_collide_on_single_open_index(db_session, cashier):
    for _ in range(3):
        shift_service.open_shift(cashier, 0)
        shift_service.close_shift(cashier, 0)

    assert db_session.query(Shift).filter_by(status="CLOSED").count() == 3
    assert len(shift_service.list_shifts(status="CLOSED")) == 3
    assert len(shift_service.list_shifts(status="CLOSED", limit=-5)) == 1
