# Overview: Payment ledger; append-only payments and the balance derived from them.

"""
Payment Ledger

WHY: Credit sales are settled over several visits. Each payment is kept as
its own immutable row and the order balance is always re-derived from them.

DESIGN PRINCIPLES:
- Append-only: payments are never edited or removed
- balance_cents = total_cents - sum(payments), never negative
- A payment may not exceed the current balance (no change on the ledger;
  cash change is handled at the POS counter, see Order.change_due_cents)
- card/transfer payments must carry a reference (auth code, transfer id)

Functions here never commit. The lifecycle manager owns the transaction
and the status change that follows a balance change.
"""

from __future__ import annotations

from ..enums import PaymentMethod
from ..errors import OverPaymentError, ValidationError
from ..extensions import db
from ..models import Order, OrderPayment
from ..time_utils import utcnow


def validate_tender(method: PaymentMethod, reference: str | None) -> str | None:
    """Check a method can settle money now and normalize its reference."""
    if not method.is_tender:
        raise ValidationError(
            "credit is not a payment tender; use cash, card or transfer",
            details={"method": method.value},
        )
    reference = (reference or "").strip() or None
    if method.requires_reference and not reference:
        raise ValidationError(
            f"payment reference is required for {method.value} payments",
            details={"method": method.value},
        )
    return reference


def calculate_balance(order: Order) -> int:
    """Remaining amount owed, derived from the ledger."""
    return max(order.total_cents - order.amount_paid_cents, 0)


def record_payment(
    order: Order,
    amount_cents: int,
    method: PaymentMethod,
    reference: str | None = None,
) -> OrderPayment:
    """
    Append a payment and recompute the order balance.

    The caller must hold the order row lock and must already have checked
    that the order accepts payments.

    Raises:
        ValidationError: non-positive amount, credit tender, missing reference
        OverPaymentError: amount exceeds the current balance
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise ValidationError("Payment amount must be a positive number of cents", details={"amount_cents": amount_cents})

    reference = validate_tender(method, reference)

    balance = calculate_balance(order)
    if amount_cents > balance:
        raise OverPaymentError(amount_cents, balance)

    payment = OrderPayment(
        amount_cents=amount_cents,
        method=method,
        reference=reference,
        paid_at=utcnow(),
    )
    order.payments.append(payment)
    order.balance_cents = calculate_balance(order)
    db.session.flush()
    return payment


def settle_in_full(order: Order, method: PaymentMethod, reference: str | None = None) -> OrderPayment:
    """Record one payment for the whole outstanding balance."""
    return record_payment(order, calculate_balance(order), method, reference)


def get_payment_summary(order: Order) -> dict:
    """
    Payment summary for an order.

    Returns:
        - total_cents, amount_paid_cents, balance_cents
        - balanced: whether the ledger equation holds
        - payments: list of payment records
    """
    paid = order.amount_paid_cents
    return {
        "order_id": order.id,
        "display_id": order.display_id,
        "status": order.status.value,
        "total_cents": order.total_cents,
        "amount_paid_cents": paid,
        "balance_cents": order.balance_cents,
        "balanced": paid + order.balance_cents == order.total_cents,
        "payments": [p.to_dict() for p in order.payments],
    }
