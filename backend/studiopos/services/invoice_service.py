# Overview: Service-layer allocation of per-day invoice numbers.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InvoiceSequence
from ..time_utils import utcnow


INVOICE_PREFIX = "INV"
INVOICE_PAD = 4


def format_invoice_number(day_key: str, number: int) -> str:
    return f"{INVOICE_PREFIX}-{day_key}-{number:0{INVOICE_PAD}d}"


def _take_number(day_key: str) -> int | None:
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.day_key == day_key)
        .values(next_number=InvoiceSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(InvoiceSequence.next_number)
        .filter_by(day_key=day_key)
        .scalar()
    )
    return current - 1


def next_invoice_number(now: datetime | None = None) -> str:
    """
    Allocate the next INV-YYYYMMDD-NNNN number for the day of `now`.

    Runs inside the caller's transaction and does not commit: if checkout
    rolls back, the number is released with it. The UPDATE takes the row
    lock, so concurrent checkouts on the same day serialize here.
    """
    day_key = (now or utcnow()).strftime("%Y%m%d")

    number = _take_number(day_key)
    if number is not None:
        return format_invoice_number(day_key, number)

    # First invoice of the day; a concurrent first insert loses on the
    # unique day_key and falls back to the UPDATE path
    try:
        with db.session.begin_nested():
            db.session.add(InvoiceSequence(day_key=day_key, next_number=2))
        return format_invoice_number(day_key, 1)
    except IntegrityError:
        number = _take_number(day_key)
        if number is None:
            raise
        return format_invoice_number(day_key, number)
