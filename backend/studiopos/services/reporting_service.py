# Overview: Service-layer read models for reports, dashboard and shift reconciliation.

"""
Reporting Service

All revenue figures are read from COMPLETED orders only; VOID orders are
excluded everywhere. Date filters are half-open [date_from, date_to).

COGS comes from the cost_at_sale snapshot on each order line, never from
the product's current cost price.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Expense, Order, OrderItem, Product, Shift
from ..time_utils import day_bounds, to_utc_z, utcnow, week_start
from .criteria import ListCriteria, apply_criteria
from . import shift_service


REVENUE_PERIODS = ("daily", "weekly", "monthly", "yearly")


def _completed_orders(criteria: ListCriteria | None):
    query = (
        db.session.query(Order)
        .filter(Order.status == "COMPLETED")
        .options(selectinload(Order.items), selectinload(Order.payments))
    )
    return apply_criteria(query, criteria, date_column=Order.created_at)


def _window(criteria: ListCriteria | None) -> dict:
    return {
        "from": to_utc_z(criteria.date_from) if criteria else None,
        "to": to_utc_z(criteria.date_to) if criteria else None,
    }


def financial_report(criteria: ListCriteria | None = None) -> dict:
    orders = _completed_orders(criteria).order_by(Order.created_at.desc(), Order.id.desc()).all()

    turnover = sum(o.total_amount_cents for o in orders)
    cogs = sum(item.line_cost_cents for o in orders for item in o.items)

    payments_breakdown: dict[str, int] = {}
    for o in orders:
        for p in o.payments:
            payments_breakdown[p.method] = payments_breakdown.get(p.method, 0) + p.amount_cents

    daily: dict[str, int] = {}
    for o in orders:
        key = o.created_at.strftime("%Y-%m-%d")
        daily[key] = daily.get(key, 0) + o.total_amount_cents

    expenses_query = apply_criteria(
        db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0)),
        criteria,
        date_column=Expense.date,
    )
    expenses_total = int(expenses_query.scalar() or 0)

    shifts_query = db.session.query(Shift).filter(Shift.status == "CLOSED")
    shifts = apply_criteria(shifts_query, criteria, date_column=Shift.end_time).order_by(Shift.end_time.asc()).all()
    cash_in_drawer = sum(s.reported_cash_cents or 0 for s in shifts)

    gross_profit = turnover - cogs
    return {
        **_window(criteria),
        "turnover_cents": turnover,
        "total_orders": len(orders),
        "cogs_cents": cogs,
        "gross_profit_cents": gross_profit,
        "expenses_cents": expenses_total,
        "net_profit_cents": gross_profit - expenses_total,
        "payments_breakdown": payments_breakdown,
        "daily_revenue": [{"date": k, "amount_cents": v} for k, v in sorted(daily.items())],
        "orders": [o.to_dict() for o in orders],
        "shifts": [s.to_dict() for s in shifts],
        "total_cash_in_drawer_cents": cash_in_drawer,
    }


def top_products(criteria: ListCriteria | None = None, limit: int = 10) -> list[dict]:
    """Best sellers by quantity, with revenue at sale price."""
    limit = min(max(limit or 10, 1), 100)
    qty = func.sum(OrderItem.quantity)
    revenue = func.sum(OrderItem.quantity * OrderItem.price_at_sale_cents)

    query = (
        db.session.query(
            OrderItem.product_id,
            func.coalesce(Product.name, "Unknown").label("product_name"),
            qty.label("qty"),
            revenue.label("revenue"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .outerjoin(Product, Product.id == OrderItem.product_id)
        .filter(Order.status == "COMPLETED")
    )
    query = apply_criteria(query, criteria, date_column=Order.created_at, product_column=OrderItem.product_id)

    rows = (
        query.group_by(OrderItem.product_id, Product.name)
        .order_by(qty.desc(), OrderItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "qty": int(row.qty or 0),
            "revenue_cents": int(row.revenue or 0),
        }
        for row in rows
    ]


def _period_key(dt: datetime, period: str) -> str:
    if period == "daily":
        return dt.strftime("%Y-%m-%d")
    if period == "weekly":
        return week_start(dt).isoformat()
    if period == "monthly":
        return dt.strftime("%Y-%m")
    return dt.strftime("%Y")


def aggregated_revenue(criteria: ListCriteria | None = None, period: str = "daily") -> list[dict]:
    """
    Revenue bucketed by period.

    Weekly buckets are labelled with the Monday that starts the week.
    Buckets without orders are omitted.
    """
    if period not in REVENUE_PERIODS:
        raise ValidationError(f"period must be one of {', '.join(REVENUE_PERIODS)}")

    rows = (
        apply_criteria(
            db.session.query(Order.created_at, Order.total_amount_cents).filter(Order.status == "COMPLETED"),
            criteria,
            date_column=Order.created_at,
        )
        .order_by(Order.created_at.asc())
        .all()
    )

    buckets: dict[str, int] = {}
    for created_at, total in rows:
        key = _period_key(created_at, period)
        buckets[key] = buckets.get(key, 0) + total

    return [{"period": k, "amount_cents": v} for k, v in sorted(buckets.items())]


def dashboard_stats(now: datetime | None = None) -> dict:
    today_start, today_end = day_bounds((now or utcnow()).date())
    today = ListCriteria(date_from=today_start, date_to=today_end)

    totals = apply_criteria(
        db.session.query(
            func.coalesce(func.sum(Order.total_amount_cents), 0),
            func.count(Order.id),
        ).filter(Order.status == "COMPLETED"),
        today,
        date_column=Order.created_at,
    ).one()

    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    low_stock = (
        db.session.query(Product)
        .filter(Product.stock <= threshold, Product.is_archived.is_(False))
        .order_by(Product.stock.asc(), Product.id.asc())
        .limit(5)
        .all()
    )

    recent = (
        apply_criteria(
            db.session.query(Order).filter(Order.status == "COMPLETED"),
            today,
            date_column=Order.created_at,
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(5)
        .all()
    )

    return {
        "today_sales_cents": int(totals[0] or 0),
        "today_count": int(totals[1] or 0),
        "low_stock": [p.to_dict() for p in low_stock],
        "recent_orders": [
            {**o.to_dict(), "user_name": o.user.name if o.user else None}
            for o in recent
        ],
    }


def order_margin(order_id: int) -> dict:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")

    revenue = sum(item.line_total_cents for item in order.items)
    cost = sum(item.line_cost_cents for item in order.items)
    return {
        "order_id": order.id,
        "revenue_cents": revenue,
        "cost_cents": cost,
        "margin_cents": revenue - cost,
    }


def shift_summary(shift_id: int) -> dict:
    """
    Drawer reconciliation for one shift.

    expected cash = initial float + cash kept from the shift's completed
    orders (cash tendered minus change handed back). Variance is only
    reported once the shift is closed.
    """
    shift = shift_service.get_shift(shift_id)

    orders = (
        db.session.query(Order)
        .filter(Order.shift_id == shift.id, Order.status == "COMPLETED")
        .options(selectinload(Order.payments))
        .all()
    )

    cash_sales = 0
    for o in orders:
        tendered = sum(p.amount_cents for p in o.payments)
        cash = sum(p.amount_cents for p in o.payments if p.method == "CASH")
        change = max(tendered - o.total_amount_cents, 0)
        cash_sales += max(cash - change, 0)

    expected = shift.initial_cash_cents + cash_sales
    reported = shift.reported_cash_cents
    return {
        "shift": shift.to_dict(),
        "order_count": len(orders),
        "initial_cash_cents": shift.initial_cash_cents,
        "cash_sales_cents": cash_sales,
        "expected_cash_cents": expected,
        "reported_cash_cents": reported,
        "variance_cents": (reported - expected) if reported is not None else None,
    }
