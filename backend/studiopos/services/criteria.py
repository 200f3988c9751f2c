# Overview: Explicit filter criteria for list and report queries.

"""
List/report filters.

Every listing accepts the same small set of optional filters. Instead of
building ad-hoc where clauses per endpoint, callers fill a ListCriteria and
hand it to apply_criteria together with the columns the filters map to.

Supported filters (and nothing else):
- date_from: column >= date_from   (inclusive)
- date_to:   column <  date_to     (exclusive, half-open window)
- product_id: column == product_id
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from ..errors import ValidationError
from ..time_utils import parse_iso_datetime


@dataclass(frozen=True)
class ListCriteria:
    date_from: datetime | None = None
    date_to: datetime | None = None
    product_id: int | None = None

    def __post_init__(self):
        if self.date_from and self.date_to and self.date_from >= self.date_to:
            raise ValidationError("from must be earlier than to")


def apply_criteria(query, criteria: ListCriteria | None, *, date_column=None, product_column=None):
    if criteria is None:
        return query

    if criteria.date_from is not None and date_column is not None:
        query = query.filter(date_column >= criteria.date_from)
    if criteria.date_to is not None and date_column is not None:
        query = query.filter(date_column < criteria.date_to)
    if criteria.product_id is not None and product_column is not None:
        query = query.filter(product_column == criteria.product_id)
    return query


def _parse_date_arg(args: Mapping, key: str) -> datetime | None:
    raw = args.get(key)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def criteria_from_args(args: Mapping) -> ListCriteria:
    """Build criteria from query-string args: from, to, product_id."""
    product_raw = args.get("product_id") or args.get("productId")
    product_id = None
    if product_raw not in (None, ""):
        try:
            product_id = int(product_raw)
        except (TypeError, ValueError):
            raise ValidationError("product_id must be an integer")

    return ListCriteria(
        date_from=_parse_date_arg(args, "from"),
        date_to=_parse_date_arg(args, "to"),
        product_id=product_id,
    )
