# Overview: Order lifecycle manager; creation, approval, payment and cancellation of orders.

"""
Order Lifecycle Manager

WHY: An order touches three resources at once (the order row, the stock rows
of its products, the customer aggregate). Every operation here is one
database transaction, so no caller ever sees half of it.

LIFECYCLE:
    create (pos, cash/card/transfer)   -> paid             (full payment recorded)
    create (pos, credit)               -> pending-payment  (balance = total)
    create (pos, credit, total 0)      -> paid
    create (online-store, any method)  -> pending-approval (balance = total)

    pending-approval --approve-->  paid | pending-payment
    pending-approval --reject-->   cancelled   (stock kept: the sale is voided, not restocked)
    pending-payment  --payment-->  pending-payment | paid
    pending-payment | paid --cancel--> cancelled (stock released)
    cancelled: terminal

Stock is reserved at creation for both channels, so approval never
re-checks stock.

CONCURRENCY:
- begin_write() takes the write lock up front on SQLite; elsewhere the
  order row is locked with SELECT ... FOR UPDATE.
- Order.version_id makes a write against stale state fail with
  StaleDataError, which run_with_retry retries on fresh data.
- Stock decrements are guarded UPDATEs (see stock_service).
"""

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app
from sqlalchemy import func

from ..enums import (
    EVENT_ADD_PAYMENT,
    EVENT_APPROVE,
    EVENT_CANCEL,
    EVENT_REJECT,
    OrderEventType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
)
from ..errors import IllegalTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderItem, Product
from ..time_utils import utcnow
from ..validation import MAX_ROW_ID
from . import customer_service, payment_service, stock_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .display_id_service import allocate_order_display_id
from .ledger_service import append_order_event
from .order_schemas import NewOrderRequest, OrderFilter


# =============================================================================
# STATE MACHINE
# =============================================================================

# event -> statuses the event may start from
ALLOWED_FROM = {
    EVENT_APPROVE: frozenset({OrderStatus.PENDING_APPROVAL}),
    EVENT_REJECT: frozenset({OrderStatus.PENDING_APPROVAL}),
    EVENT_ADD_PAYMENT: frozenset({OrderStatus.PENDING_PAYMENT}),
    EVENT_CANCEL: frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.PAID}),
}


def can_transition(status: OrderStatus, event: str) -> bool:
    return status in ALLOWED_FROM.get(event, frozenset())


def allowed_events(status: OrderStatus) -> list[str]:
    """Events a UI may offer for an order in this status."""
    return [event for event, sources in ALLOWED_FROM.items() if status in sources]


def _require_transition(order: Order, event: str) -> None:
    if not can_transition(order.status, event):
        raise IllegalTransitionError(order.status.value, event)


# =============================================================================
# INTERNAL HELPERS
# =============================================================================

def _default_due_date() -> date:
    days = current_app.config.get("CREDIT_DEFAULT_TERM_DAYS", 15)
    return utcnow().date() + timedelta(days=days)


def _resolve_due_date(due_date: date | None) -> date:
    if due_date is None:
        return _default_due_date()
    if due_date < utcnow().date():
        raise ValidationError(
            "payment_due_date cannot be in the past",
            details={"payment_due_date": due_date.isoformat()},
        )
    return due_date


def _load_products(product_ids: list[str]) -> dict[str, Product]:
    """Catalog rows for every requested product; unknown or inactive ids are rejected."""
    unique_ids = list(dict.fromkeys(product_ids))
    products = db.session.query(Product).filter(Product.id.in_(unique_ids)).all()
    by_id = {p.id: p for p in products}

    missing = [pid for pid in unique_ids if pid not in by_id]
    if missing:
        raise ValidationError("Unknown product(s) in order", details={"product_ids": missing})

    inactive = [pid for pid in unique_ids if not by_id[pid].is_active]
    if inactive:
        raise ValidationError("Product(s) not available for sale", details={"product_ids": inactive})

    return by_id


def _get_order_for_update(order_id: int) -> Order:
    if not 0 < order_id <= MAX_ROW_ID:
        raise NotFoundError("Order", order_id)
    order = (
        lock_for_update(db.session.query(Order).filter_by(id=order_id))
        .populate_existing()
        .first()
    )
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def _stock_lines(order: Order) -> list[tuple[str, int]]:
    return [(item.product_id, item.quantity) for item in order.items]


# =============================================================================
# CREATION
# =============================================================================

def create_order(request: NewOrderRequest) -> Order:
    """
    Create an order: resolve customer, reserve stock, allocate display id,
    persist, and record the purchase on the customer, in one transaction.

    Raises:
        ValidationError: malformed request, unknown products, bad cash tender
        InsufficientStockError: a product cannot cover its quantity (nothing persisted)
    """
    request.validate()
    walk_in_name = current_app.config.get("WALK_IN_CUSTOMER_NAME", "Consumidor Final")

    def _op():
        begin_write()

        products = _load_products([line.product_id for line in request.items])

        customer_name = request.customer_name or walk_in_name
        customer_id = customer_service.resolve(
            request.customer_phone, customer_name, request.customer_address
        )

        stock_service.reserve([(line.product_id, line.quantity) for line in request.items])

        items = []
        for position, line in enumerate(request.items, start=1):
            product = products[line.product_id]
            items.append(OrderItem(
                position=position,
                product_id=product.id,
                name=product.name,
                unit_price_cents=product.price_cents,
                quantity=line.quantity,
                line_total_cents=product.price_cents * line.quantity,
                image_ref=product.image,
            ))

        total = sum(item.line_total_cents for item in items) + request.shipping_cost_cents

        change_due = None
        if request.cash_tendered_cents is not None:
            if request.cash_tendered_cents < total:
                raise ValidationError(
                    "Cash tendered is less than the order total",
                    details={"cash_tendered_cents": request.cash_tendered_cents, "total_cents": total},
                )
            change_due = request.cash_tendered_cents - total

        if request.source is OrderSource.ONLINE_STORE:
            status = OrderStatus.PENDING_APPROVAL
        elif request.payment_method is PaymentMethod.CREDIT and total > 0:
            status = OrderStatus.PENDING_PAYMENT
        else:
            # A zero total leaves nothing to collect, even on credit
            status = OrderStatus.PAID

        # Online orders get their credit terms when approved
        due_date = None
        if status is OrderStatus.PENDING_PAYMENT:
            due_date = _resolve_due_date(request.payment_due_date)

        order = Order(
            display_id=allocate_order_display_id(),
            created_at=utcnow(),
            customer_id=customer_id,
            customer_name=customer_name,
            customer_phone=customer_service.normalize_phone(request.customer_phone),
            customer_address=request.customer_address,
            items=items,
            shipping_cost_cents=request.shipping_cost_cents,
            total_cents=total,
            balance_cents=total,
            cash_tendered_cents=request.cash_tendered_cents,
            change_due_cents=change_due,
            payment_method=request.payment_method,
            payment_reference=request.payment_reference,
            payment_due_date=due_date,
            status=status,
            source=request.source,
            delivery_method=request.delivery_method,
            stock_released=False,
        )
        db.session.add(order)
        db.session.flush()

        if status is OrderStatus.PAID:
            order.approved_at = order.created_at
            if total > 0:
                payment_service.settle_in_full(order, request.payment_method, request.payment_reference)
            order.balance_cents = 0

        if customer_id is not None:
            customer_service.record_purchase(customer_id, total)

        append_order_event(
            order=order,
            event_type=OrderEventType.CREATED,
            from_status=None,
            amount_cents=total,
            note=f"{request.source.value} order",
        )

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s created (%s, %s, total=%s)",
        order.display_id, order.source.value, order.status.value, order.total_cents,
    )
    return order


# =============================================================================
# TRANSITIONS
# =============================================================================

def approve_order(
    order_id: int,
    payment_method: PaymentMethod,
    due_date: date | None = None,
    reference: str | None = None,
) -> Order:
    """
    Confirm a pending-approval order as a sale.

    Non-credit: one full payment is recorded and the order becomes paid.
    Credit: balance stays at total and the order becomes pending-payment
    with a due date (default CREDIT_DEFAULT_TERM_DAYS from today).
    A zero-total order is paid on approval whatever the method.

    Raises:
        IllegalTransitionError: order is not pending-approval
        ValidationError: missing reference for card/transfer, due date on non-credit
    """
    def _op():
        begin_write()
        order = _get_order_for_update(order_id)
        _require_transition(order, EVENT_APPROVE)
        from_status = order.status.value

        if payment_method is PaymentMethod.CREDIT and payment_service.calculate_balance(order) > 0:
            order.payment_due_date = _resolve_due_date(due_date or order.payment_due_date)
            order.payment_reference = (reference or "").strip() or order.payment_reference
            order.payment_method = payment_method
            order.balance_cents = payment_service.calculate_balance(order)
            order.status = OrderStatus.PENDING_PAYMENT
        else:
            if due_date is not None and payment_method is not PaymentMethod.CREDIT:
                raise ValidationError("payment_due_date only applies to credit orders")
            order.payment_method = payment_method
            order.payment_due_date = None
            # Credit on a zero total has nothing to collect
            if payment_method.is_tender:
                tender_reference = payment_service.validate_tender(payment_method, reference)
                order.payment_reference = tender_reference
                if payment_service.calculate_balance(order) > 0:
                    payment_service.settle_in_full(order, payment_method, tender_reference)
            order.balance_cents = 0
            order.status = OrderStatus.PAID

        order.approved_at = utcnow()
        append_order_event(
            order=order,
            event_type=OrderEventType.APPROVED,
            from_status=from_status,
            note=f"approved as {payment_method.value}",
        )

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s approved (%s -> %s)", order.display_id, payment_method.value, order.status.value)
    return order


def reject_order(order_id: int) -> Order:
    """
    Void a pending-approval order.

    Stock is NOT released: the reserved units stay out of stock until
    staff handle them by hand (business rule).
    """
    def _op():
        begin_write()
        order = _get_order_for_update(order_id)
        _require_transition(order, EVENT_REJECT)
        from_status = order.status.value

        order.status = OrderStatus.CANCELLED
        order.cancelled_at = utcnow()

        append_order_event(
            order=order,
            event_type=OrderEventType.REJECTED,
            from_status=from_status,
            note="rejected; stock not released",
        )

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s rejected", order.display_id)
    return order


def add_payment(
    order_id: int,
    amount_cents: int,
    method: PaymentMethod,
    reference: str | None = None,
) -> Order:
    """
    Record a (partial) payment on a pending-payment order.

    The order becomes paid when its balance reaches zero.

    Raises:
        IllegalTransitionError: order is not pending-payment
        OverPaymentError: amount exceeds the current balance
        ValidationError: non-positive amount, credit tender, missing reference
    """
    def _op():
        begin_write()
        order = _get_order_for_update(order_id)
        _require_transition(order, EVENT_ADD_PAYMENT)
        from_status = order.status.value

        payment_service.record_payment(order, amount_cents, method, reference)
        if order.balance_cents == 0:
            order.status = OrderStatus.PAID

        append_order_event(
            order=order,
            event_type=OrderEventType.PAYMENT_RECORDED,
            from_status=from_status,
            amount_cents=amount_cents,
            note=method.value,
        )

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Payment of %s recorded on order %s (balance=%s)",
        amount_cents, order.display_id, order.balance_cents,
    )
    return order


def cancel_order(order_id: int) -> Order:
    """
    Unwind a confirmed sale: stock is released and the order is cancelled.

    The balance is frozen as it was; recorded payments stay on the ledger.
    Customer lifetime figures are not reverted.
    """
    def _op():
        begin_write()
        order = _get_order_for_update(order_id)
        _require_transition(order, EVENT_CANCEL)
        from_status = order.status.value

        stock_service.release(_stock_lines(order))

        order.status = OrderStatus.CANCELLED
        order.cancelled_at = utcnow()
        order.stock_released = True

        append_order_event(
            order=order,
            event_type=OrderEventType.CANCELLED,
            from_status=from_status,
            note="cancelled; stock released",
        )

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s cancelled, stock released", order.display_id)
    return order


# =============================================================================
# READS
# =============================================================================

def get_order(ref) -> Order:
    """
    Look an order up by internal id (int or digit string) or display id.
    Ids outside the database integer range simply match nothing.

    Raises:
        NotFoundError
    """
    order = None
    if isinstance(ref, int) and not isinstance(ref, bool):
        if 0 < ref <= MAX_ROW_ID:
            order = db.session.get(Order, ref)
    elif isinstance(ref, str) and ref.strip():
        ref = ref.strip()
        if ref.isascii() and ref.isdigit() and 0 < int(ref) <= MAX_ROW_ID:
            order = db.session.get(Order, int(ref))
        if order is None:
            order = (
                db.session.query(Order)
                .filter(func.upper(Order.display_id) == ref.upper())
                .first()
            )
    if not order:
        raise NotFoundError("Order", ref)
    return order


def list_orders(order_filter: OrderFilter | None = None) -> list[Order]:
    """Orders matching the filter, newest first."""
    f = order_filter or OrderFilter()
    query = db.session.query(Order)

    if f.start is not None:
        query = query.filter(Order.created_at >= f.start)
    if f.end is not None:
        query = query.filter(Order.created_at <= f.end)
    if f.status is not None:
        query = query.filter(Order.status == f.status)
    if f.source is not None:
        query = query.filter(Order.source == f.source)
    if f.payment_method is not None:
        query = query.filter(Order.payment_method == f.payment_method)
    if f.delivery_method is not None:
        query = query.filter(Order.delivery_method == f.delivery_method)
    if f.customer_id is not None:
        query = query.filter(Order.customer_id == f.customer_id)

    return (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset(f.offset)
        .limit(f.limit)
        .all()
    )
