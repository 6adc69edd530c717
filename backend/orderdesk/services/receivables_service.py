# Overview: Accounts receivable; outstanding credit orders aged against their due dates.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import func

from ..enums import OrderStatus
from ..extensions import db
from ..models import Order
from ..time_utils import to_utc_z, utcnow


AGING_OVERDUE = "overdue"
AGING_DUE_SOON = "due-soon"
AGING_PENDING = "pending"


def classify(due_date: date | None, as_of: date, due_soon_days: int) -> tuple[str, int]:
    """
    Aging bucket and signed day count for a due date.

    days > 0: days overdue; days <= 0: days until due.
    """
    if due_date is None:
        return AGING_PENDING, 0
    days = (as_of - due_date).days
    if days > 0:
        return AGING_OVERDUE, days
    if -due_soon_days <= days <= 0:
        return AGING_DUE_SOON, days
    return AGING_PENDING, days


def list_receivables(as_of: date | None = None) -> dict:
    """
    Every pending-payment order with its aging, earliest due date first.

    Returns:
        {"as_of", "total_outstanding_cents", "count", "receivables": [...]}
    """
    as_of = as_of or utcnow().date()
    due_soon_days = current_app.config.get("RECEIVABLES_DUE_SOON_DAYS", 7)

    orders = (
        db.session.query(Order)
        .filter(Order.status == OrderStatus.PENDING_PAYMENT)
        .order_by(Order.payment_due_date.is_(None), Order.payment_due_date, Order.id)
        .all()
    )

    rows = []
    for order in orders:
        aging, days = classify(order.payment_due_date, as_of, due_soon_days)
        rows.append({
            "order_id": order.id,
            "display_id": order.display_id,
            "customer_id": order.customer_id,
            "customer_name": order.customer_name,
            "customer_phone": order.customer_phone,
            "created_at": to_utc_z(order.created_at),
            "payment_due_date": order.payment_due_date.isoformat() if order.payment_due_date else None,
            "total_cents": order.total_cents,
            "balance_cents": order.balance_cents,
            "aging": aging,
            "days_overdue": max(days, 0),
            "days_until_due": max(-days, 0),
        })

    total_outstanding = (
        db.session.query(func.coalesce(func.sum(Order.balance_cents), 0))
        .filter(Order.status == OrderStatus.PENDING_PAYMENT)
        .scalar()
    )

    return {
        "as_of": as_of.isoformat(),
        "total_outstanding_cents": int(total_outstanding or 0),
        "count": len(rows),
        "receivables": rows,
    }
