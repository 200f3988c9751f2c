"""
Expense tests.

Only admins may add, edit or delete expenses; anyone signed in may list them.
"""

from datetime import datetime

import pytest

from studiopos.errors import AuthorizationError, NotFoundError, ValidationError
from studiopos.extensions import db
from studiopos.models import AuditLog, Expense
from studiopos.services import expense_service
from studiopos.services.criteria import ListCriteria


def _payload(**overrides):
    payload = {
        "description": "Ice cubes",
        "amount_cents": 15000,
        "category": "supplies",
        "date": "2026-10-19T07:30:00Z",
    }
    payload.update(overrides)
    return payload


def test_admin_adds_expense(db_session, admin):
    expense = expense_service.add_expense(admin, _payload(notes="two bags"))

    assert expense.user_id == admin.user_id
    assert expense.category == "SUPPLIES"
    assert expense.date == datetime(2026, 10, 19, 7, 30)

    entry = db_session.query(AuditLog).filter_by(entity="EXPENSE", entity_id=expense.id).one()
    assert entry.action == "CREATE"
    assert entry.to_dict()["new_value"]["description"] == "Ice cubes"


def test_cashier_cannot_add_expense(db_session, cashier):
    with pytest.raises(AuthorizationError) as exc:
        expense_service.add_expense(cashier, _payload())

    assert exc.value.message == "Only admins can add expenses"
    assert exc.value.status_code == 403
    assert db_session.query(Expense).count() == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount_cents": 0},
        {"amount_cents": -100},
        {"amount_cents": 10.5},
        {"category": "PAYROLL"},
        {"description": "   "},
        {"date": "yesterday"},
        {"vendor": "Ice Co"},
    ],
)
def test_invalid_expense_is_rejected(db_session, admin, overrides):
    with pytest.raises(ValidationError):
        expense_service.add_expense(admin, _payload(**overrides))


def test_missing_required_field(db_session, admin):
    payload = _payload()
    del payload["date"]
    with pytest.raises(ValidationError):
        expense_service.add_expense(admin, payload)


def test_update_expense_is_partial(db_session, admin):
    expense = expense_service.add_expense(admin, _payload())

    updated = expense_service.update_expense(admin, expense.id, {"amount_cents": 17500})

    assert updated.amount_cents == 17500
    assert updated.description == "Ice cubes"
    entry = db_session.query(AuditLog).filter_by(entity="EXPENSE", action="UPDATE").one()
    assert entry.to_dict()["old_value"]["amount_cents"] == 15000


def test_cashier_cannot_update_or_delete(db_session, admin, cashier):
    expense = expense_service.add_expense(admin, _payload())

    with pytest.raises(AuthorizationError):
        expense_service.update_expense(cashier, expense.id, {"amount_cents": 1})
    with pytest.raises(AuthorizationError):
        expense_service.delete_expense(cashier, expense.id)

    assert db.session.get(Expense, expense.id).amount_cents == 15000


def test_delete_expense(db_session, admin):
    expense = expense_service.add_expense(admin, _payload())

    expense_service.delete_expense(admin, expense.id)

    assert db.session.get(Expense, expense.id) is None
    assert db_session.query(AuditLog).filter_by(entity="EXPENSE", action="DELETE").count() == 1

    with pytest.raises(NotFoundError):
        expense_service.delete_expense(admin, expense.id)


def test_list_expenses_newest_first_within_window(db_session, admin):
    expense_service.add_expense(admin, _payload(description="Older", date="2026-10-01T08:00:00Z"))
    expense_service.add_expense(admin, _payload(description="Newer", date="2026-10-18T08:00:00Z"))

    assert [e.description for e in expense_service.list_expenses()] == ["Newer", "Older"]

    window = ListCriteria(date_from=datetime(2026, 10, 10), date_to=datetime(2026, 10, 20))
    assert [e.description for e in expense_service.list_expenses(window)] == ["Newer"]
