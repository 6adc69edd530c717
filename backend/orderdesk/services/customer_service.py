# Overview: Customer aggregate; phone-keyed upsert and lifetime purchase bookkeeping.

"""
Customer Aggregate

WHY: Staff look customers up by phone at the counter and online shoppers
type the same phone at checkout, so the phone number is the natural key.

RULES:
- Blank phone -> not tracked (walk-in). Anonymous sales never merge.
- Known phone -> name overwritten with the latest value; address
  overwritten only when a new one is supplied.
- record_purchase() bumps total_spent_cents/order_count atomically and is
  not reverted when an order is later cancelled.

Functions here never commit. They run inside the caller's unit of work.
"""

from __future__ import annotations

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer
from ..time_utils import utcnow
from ..validation import MAX_ROW_ID


def normalize_phone(phone: str | None) -> str | None:
    """Strip whitespace; blank becomes None."""
    if phone is None:
        return None
    phone = str(phone).strip()
    return phone or None


def resolve(phone: str | None, name: str | None, address: dict | None = None) -> int | None:
    """
    Find or create the customer for this phone and return its id.

    Returns None for walk-in sales (no phone).
    """
    phone = normalize_phone(phone)
    if phone is None:
        return None

    name = (name or "").strip()
    if not name:
        raise ValidationError("customer name is required when a phone is given")

    customer = db.session.query(Customer).filter_by(phone=phone).first()
    if customer is None:
        customer = Customer(
            name=name,
            phone=phone,
            address=address,
            total_spent_cents=0,
            order_count=0,
        )
        try:
            with db.session.begin_nested():
                db.session.add(customer)
        except IntegrityError:
            # Another checkout created the same phone first
            customer = db.session.query(Customer).filter_by(phone=phone).one()
        else:
            return customer.id

    customer.name = name
    if address:
        customer.address = address
    db.session.flush()
    return customer.id


def record_purchase(customer_id: int, amount_cents: int) -> None:
    """Add one order and its total to the customer's lifetime figures."""
    stmt = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_spent_cents=Customer.total_spent_cents + amount_cents,
            order_count=Customer.order_count + 1,
            last_order_at=utcnow(),
        )
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise NotFoundError("Customer", customer_id)


def get_customer(customer_id: int) -> Customer:
    customer = None
    if 0 < customer_id <= MAX_ROW_ID:
        customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


def find_by_phone(phone: str | None) -> Customer | None:
    phone = normalize_phone(phone)
    if phone is None:
        return None
    return db.session.query(Customer).filter_by(phone=phone).first()


def list_customers(search: str | None = None, limit: int = 50, offset: int = 0) -> list[Customer]:
    """Customers with at least one order, most valuable first."""
    query = db.session.query(Customer).filter(Customer.order_count > 0)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.phone.ilike(pattern)))
    return (
        query.order_by(Customer.total_spent_cents.desc(), Customer.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
