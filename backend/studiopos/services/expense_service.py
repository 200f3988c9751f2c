# Overview: Service-layer operations for operating expenses.

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import Expense
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_expense
from .audit_service import record_audit
from .criteria import ListCriteria, apply_criteria
from .permission_service import require_admin

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "category", "date", "notes"},
    required_on_create={"description", "amount_cents", "category", "date"},
)

EXPENSE_LIST_LIMIT = 100


def _get_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def list_expenses(criteria: ListCriteria | None = None) -> list[Expense]:
    """Newest first by expense date; any authenticated user may read."""
    query = apply_criteria(db.session.query(Expense), criteria, date_column=Expense.date)
    return (
        query.order_by(Expense.date.desc(), Expense.id.desc())
        .limit(EXPENSE_LIST_LIMIT)
        .all()
    )


def add_expense(actor, payload: dict) -> Expense:
    require_admin(actor, message="Only admins can add expenses")
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
    enforce_rules_expense(patch)

    expense = Expense(user_id=actor.user_id, **patch)
    db.session.add(expense)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="CREATE",
        entity="EXPENSE",
        entity_id=expense.id,
        new_value=expense.to_dict(),
    )
    db.session.commit()
    return expense


def update_expense(actor, expense_id: int, payload: dict) -> Expense:
    require_admin(actor, message="Only admins can update expenses")
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
    enforce_rules_expense(patch)

    expense = _get_expense(expense_id)
    before = expense.to_dict()
    for k, v in patch.items():
        setattr(expense, k, v)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="UPDATE",
        entity="EXPENSE",
        entity_id=expense.id,
        old_value=before,
        new_value=expense.to_dict(),
    )
    db.session.commit()
    return expense


def delete_expense(actor, expense_id: int) -> None:
    require_admin(actor, message="Only admins can delete expenses")
    expense = _get_expense(expense_id)
    before = expense.to_dict()

    db.session.delete(expense)
    db.session.flush()

    record_audit(
        user_id=actor.user_id,
        action="DELETE",
        entity="EXPENSE",
        entity_id=expense_id,
        old_value=before,
    )
    db.session.commit()
