# Overview: Append-only order event history written alongside each lifecycle change.

"""
Order Event Log Invariants (authoritative)

- Append-only: no updates or deletes of existing events.
- Events are written inside the same DB transaction as the change they record.
- No business logic here; callers decide what happened.
"""

from __future__ import annotations

from ..enums import OrderEventType
from ..extensions import db
from ..models import Order, OrderEvent
from ..time_utils import utcnow


def append_order_event(
    *,
    order: Order,
    event_type: OrderEventType,
    from_status: str | None,
    amount_cents: int | None = None,
    note: str | None = None,
) -> OrderEvent:
    ev = OrderEvent(
        order_id=order.id,
        event_type=event_type,
        from_status=from_status,
        to_status=order.status.value,
        amount_cents=amount_cents,
        note=note,
        occurred_at=utcnow(),
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev


def get_order_events(order_id: int) -> list[OrderEvent]:
    return (
        db.session.query(OrderEvent)
        .filter_by(order_id=order_id)
        .order_by(OrderEvent.id)
        .all()
    )
