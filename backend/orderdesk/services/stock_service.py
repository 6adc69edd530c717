# Overview: Stock ledger; atomic all-or-nothing reservation and release of product stock.

"""
Stock Ledger Invariants (authoritative)

- quantity_available is never negative (CHECK constraint + guarded UPDATE).
- reserve() is all-or-nothing: every line is validated before any row is
  touched, and each decrement is a single conditional UPDATE
  (quantity_available >= requested). If any decrement matches no row, the
  caller's transaction is rolled back, so no line stays decremented.
- release() only hands back quantities a prior reserve() took.
- Reads are advisory (UI "out of stock" hints); reserve() is the
  authoritative check.

Functions here never commit. They run inside the caller's unit of work.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import update

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import StockEntry


def _aggregate(items: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Sum quantities per product, preserving first-seen order."""
    totals: dict[str, int] = {}
    for product_id, quantity in items:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                "quantity must be a positive integer",
                details={"product_id": product_id, "quantity": quantity},
            )
        totals[product_id] = totals.get(product_id, 0) + quantity
    return totals


def quantity_available(product_id: str) -> int:
    """Advisory read of current stock (0 when the product has no stock row)."""
    qty = (
        db.session.query(StockEntry.quantity_available)
        .filter(StockEntry.product_id == product_id)
        .scalar()
    )
    return int(qty or 0)


def reserve(items: Iterable[tuple[str, int]]) -> None:
    """
    Reserve stock for every (product_id, quantity) line, or nothing at all.

    Raises:
        InsufficientStockError: first product that cannot cover its quantity
    """
    totals = _aggregate(items)

    # Validate every line before mutating anything
    for product_id, qty in totals.items():
        available = quantity_available(product_id)
        if available < qty:
            raise InsufficientStockError(product_id, qty, available)

    # Guarded decrements: a concurrent buyer that got there first makes the
    # WHERE clause miss, which is reported the same way.
    for product_id, qty in totals.items():
        stmt = (
            update(StockEntry)
            .where(
                StockEntry.product_id == product_id,
                StockEntry.quantity_available >= qty,
            )
            .values(quantity_available=StockEntry.quantity_available - qty)
        )
        result = db.session.execute(stmt)
        if result.rowcount != 1:
            raise InsufficientStockError(product_id, qty, quantity_available(product_id))


def release(items: Iterable[tuple[str, int]]) -> None:
    """Return previously reserved quantities to stock."""
    totals = _aggregate(items)
    for product_id, qty in totals.items():
        stmt = (
            update(StockEntry)
            .where(StockEntry.product_id == product_id)
            .values(quantity_available=StockEntry.quantity_available + qty)
        )
        db.session.execute(stmt)


def receive(product_id: str, quantity: int) -> StockEntry:
    """
    Stock intake (delivery from a supplier, initial seeding).

    Raises:
        ValidationError: quantity not a positive integer
        NotFoundError: product has no stock row
    """
    _aggregate([(product_id, quantity)])

    stmt = (
        update(StockEntry)
        .where(StockEntry.product_id == product_id)
        .values(quantity_available=StockEntry.quantity_available + quantity)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise NotFoundError("Product", product_id)

    return db.session.get(StockEntry, product_id)
