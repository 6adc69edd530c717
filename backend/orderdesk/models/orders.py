from __future__ import annotations

from ..enums import DeliveryMethod, OrderEventType, OrderSource, OrderStatus, PaymentMethod
from ..extensions import db
from ..time_utils import to_utc_z


def _enum_column(enum_cls, name: str):
    """VARCHAR + CHECK storing the enum's wire value ("pending-approval", ...)."""
    return db.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Order(db.Model):
    """
    Order document with lifecycle.

    LIFECYCLE:
        pending-approval -> paid | pending-payment   (approve)
        pending-approval -> cancelled                (reject, stock kept)
        pending-payment  -> pending-payment | paid   (add payment)
        pending-payment | paid -> cancelled          (cancel, stock released)

    INVARIANTS:
    - balance_cents == total_cents - sum(payments.amount_cents), never negative
    - status == paid implies balance_cents == 0
    - cancelled is terminal; balance is frozen at the cancellation instant

    Mutated only through services.order_service. Never deleted.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("display_id", name="uq_orders_display_id"),
        db.CheckConstraint("balance_cents >= 0", name="ck_orders_balance_non_negative"),
        db.CheckConstraint("shipping_cost_cents >= 0", name="ck_orders_shipping_non_negative"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        db.Index("ix_orders_source_created", "source", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable id for receipts and support lookups (e.g. "ORD-00042")
    display_id = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_address = db.Column(db.JSON, nullable=True)

    # Money (all amounts in cents)
    shipping_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)
    balance_cents = db.Column(db.Integer, nullable=False)

    # POS cash handling: what the customer handed over and the change returned
    cash_tendered_cents = db.Column(db.Integer, nullable=True)
    change_due_cents = db.Column(db.Integer, nullable=True)

    payment_method = db.Column(_enum_column(PaymentMethod, "payment_method"), nullable=False)
    payment_reference = db.Column(db.String(128), nullable=True)
    payment_due_date = db.Column(db.Date, nullable=True)

    status = db.Column(_enum_column(OrderStatus, "order_status"), nullable=False, index=True)
    source = db.Column(_enum_column(OrderSource, "order_source"), nullable=False, index=True)
    delivery_method = db.Column(_enum_column(DeliveryMethod, "delivery_method"), nullable=True)

    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    stock_released = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    payments = db.relationship(
        "OrderPayment",
        back_populates="order",
        order_by="OrderPayment.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def amount_paid_cents(self) -> int:
        return sum(p.amount_cents for p in self.payments)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_id": self.display_id,
            "created_at": to_utc_z(self.created_at),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_address": self.customer_address,
            "items": [item.to_dict() for item in self.items],
            "shipping_cost_cents": self.shipping_cost_cents,
            "total_cents": self.total_cents,
            "balance_cents": self.balance_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "cash_tendered_cents": self.cash_tendered_cents,
            "change_due_cents": self.change_due_cents,
            "payments": [p.to_dict() for p in self.payments],
            "payment_method": self.payment_method.value,
            "payment_reference": self.payment_reference,
            "payment_due_date": self.payment_due_date.isoformat() if self.payment_due_date else None,
            "status": self.status.value,
            "source": self.source.value,
            "delivery_method": self.delivery_method.value if self.delivery_method else None,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "stock_released": self.stock_released,
            "version_id": self.version_id,
        }


class OrderItem(db.Model):
    """Frozen snapshot of a catalog product at order time."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.UniqueConstraint("order_id", "position", name="uq_order_items_order_position"),
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)
    image_ref = db.Column(db.String(512), nullable=True)

    order = db.relationship("Order", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
            "image_ref": self.image_ref,
        }


class OrderPayment(db.Model):
    """
    Payment recorded against an order.

    IMMUTABLE: rows are appended, never edited or removed. Corrections need a
    new order, not an edit here.
    """
    __tablename__ = "order_payments"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_order_payments_amount_positive"),
        db.Index("ix_order_payments_order_paid", "order_id", "paid_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(_enum_column(PaymentMethod, "order_payment_method"), nullable=False)
    reference = db.Column(db.String(128), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents,
            "method": self.method.value,
            "reference": self.reference,
            "date": to_utc_z(self.paid_at),
        }


class OrderEvent(db.Model):
    """
    Append-only history of lifecycle events for one order.

    Written inside the same transaction as the change it records.
    """
    __tablename__ = "order_events"
    __table_args__ = (
        db.Index("ix_order_events_order_occurred", "order_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    event_type = db.Column(_enum_column(OrderEventType, "order_event_type"), nullable=False, index=True)
    from_status = db.Column(db.String(32), nullable=True)
    to_status = db.Column(db.String(32), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=True)
    note = db.Column(db.String(255), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("events", lazy=True, order_by="OrderEvent.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "event_type": self.event_type.value,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "amount_cents": self.amount_cents,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
