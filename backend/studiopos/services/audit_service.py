# Overview: Service-layer operations for the audit log.

from __future__ import annotations

import json
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import AuditLog
from .criteria import ListCriteria, apply_criteria
"""
Audit Log Invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- One entry per mutating action (checkout, stock adjustment, shift open/close,
  catalog, order and expense administration).
- Entries are written inside the caller's transaction, under a SAVEPOINT.
  A failing audit insert rolls back only the savepoint; the error is logged
  and the triggering mutation carries on. Audit failures never reach the caller.
- old_value / new_value are JSON snapshots; no stronger typing is imposed.
"""


def _serialize(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, sort_keys=True)


def record_audit(
    *,
    user_id: int | None,
    action: str,
    entity: str,
    entity_id: int | None = None,
    old_value: Any = None,
    new_value: Any = None,
) -> AuditLog | None:
    """
    Append an audit entry; fire-and-forget.

    Does not commit. Returns the entry, or None if writing it failed.
    """
    # Pending domain writes must hit the database before the savepoint opens
    db.session.flush()

    try:
        with db.session.begin_nested():
            entry = AuditLog(
                user_id=user_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                old_value=_serialize(old_value),
                new_value=_serialize(new_value),
            )
            db.session.add(entry)
        return entry
    except Exception:
        current_app.logger.warning(
            "Audit log write failed: action=%s entity=%s entity_id=%s",
            action, entity, entity_id,
            exc_info=True,
        )
        return None


def list_audit_logs(criteria: ListCriteria | None = None, limit: int = 50) -> list[AuditLog]:
    """Newest first, optional [date_from, date_to) window on timestamp."""
    limit = min(max(limit or 50, 1), 100)
    query = db.session.query(AuditLog)
    query = apply_criteria(query, criteria, date_column=AuditLog.timestamp)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
