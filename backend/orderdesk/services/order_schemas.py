# Overview: Request/filter objects accepted by the order lifecycle manager.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..enums import DeliveryMethod, OrderSource, OrderStatus, PaymentMethod
from ..errors import ValidationError
from ..validation import (
    parse_address,
    parse_cents,
    parse_date,
    parse_datetime,
    parse_enum,
    parse_int,
    parse_optional_str,
)


MAX_ITEMS_PER_ORDER = 200


@dataclass(frozen=True)
class OrderLineRequest:
    """One cart line. Price and name are resolved from the catalog, never trusted from the caller."""
    product_id: str
    quantity: int


@dataclass
class NewOrderRequest:
    items: list[OrderLineRequest]
    payment_method: PaymentMethod
    source: OrderSource
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_address: dict | None = None
    shipping_cost_cents: int = 0
    delivery_method: DeliveryMethod | None = None
    payment_reference: str | None = None
    payment_due_date: date | None = None
    cash_tendered_cents: int | None = None

    def validate(self) -> None:
        """Structural checks that need no database access."""
        if not self.items:
            raise ValidationError("Order must contain at least one item")
        if len(self.items) > MAX_ITEMS_PER_ORDER:
            raise ValidationError(f"Order cannot contain more than {MAX_ITEMS_PER_ORDER} lines")
        for line in self.items:
            if not line.product_id:
                raise ValidationError("product_id is required on every item")
            if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
                raise ValidationError(
                    "quantity must be a positive integer",
                    details={"product_id": line.product_id, "quantity": line.quantity},
                )

        if self.shipping_cost_cents < 0:
            raise ValidationError("shipping_cost_cents must be >= 0")

        if self.delivery_method is DeliveryMethod.DELIVERY and not self.customer_address:
            raise ValidationError("customer_address is required for delivery orders")

        if self.payment_due_date is not None:
            if self.payment_method is not PaymentMethod.CREDIT:
                raise ValidationError("payment_due_date only applies to credit orders")
            if self.source is not OrderSource.POS:
                raise ValidationError("online orders receive their payment_due_date on approval")

        if self.cash_tendered_cents is not None:
            if self.source is not OrderSource.POS or self.payment_method is not PaymentMethod.CASH:
                raise ValidationError("cash_tendered_cents only applies to POS cash sales")

        # POS sales settle (or open credit) immediately, so the tender must be complete
        if self.source is OrderSource.POS and self.payment_method.requires_reference:
            if not (self.payment_reference or "").strip():
                raise ValidationError(
                    f"payment_reference is required for {self.payment_method.value} payments",
                    details={"method": self.payment_method.value},
                )

    @classmethod
    def from_payload(cls, data: dict) -> "NewOrderRequest":
        """Build from a JSON body (checkout, POS, or CLI)."""
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")

        raw_items = data.get("items")
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        items = []
        for i, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{i}] must be an object")
            product_id = parse_optional_str(raw.get("product_id"), f"items[{i}].product_id", max_length=64)
            if not product_id:
                raise ValidationError(f"items[{i}].product_id is required")
            quantity = parse_int(raw.get("quantity"), f"items[{i}].quantity")
            items.append(OrderLineRequest(product_id=product_id, quantity=quantity))

        customer = data.get("customer") or {}
        if not isinstance(customer, dict):
            raise ValidationError("customer must be an object")

        shipping = data.get("shipping_cost_cents")
        cash_tendered = data.get("cash_tendered_cents")

        request = cls(
            items=items,
            payment_method=parse_enum(PaymentMethod, data.get("payment_method"), "payment_method"),
            source=parse_enum(OrderSource, data.get("source"), "source"),
            customer_name=parse_optional_str(customer.get("name"), "customer.name"),
            customer_phone=parse_optional_str(customer.get("phone"), "customer.phone", max_length=32),
            customer_address=parse_address(customer.get("address"), "customer.address"),
            shipping_cost_cents=parse_cents(shipping, "shipping_cost_cents") if shipping is not None else 0,
            delivery_method=parse_enum(DeliveryMethod, data.get("delivery_method"), "delivery_method", required=False),
            payment_reference=parse_optional_str(data.get("payment_reference"), "payment_reference", max_length=128),
            payment_due_date=parse_date(data.get("payment_due_date"), "payment_due_date"),
            cash_tendered_cents=parse_cents(cash_tendered, "cash_tendered_cents") if cash_tendered is not None else None,
        )
        request.validate()
        return request


@dataclass
class OrderFilter:
    """Read-only listing filter; pagination is the caller's job (limit/offset)."""
    start: datetime | None = None
    end: datetime | None = None
    status: OrderStatus | None = None
    source: OrderSource | None = None
    payment_method: PaymentMethod | None = None
    delivery_method: DeliveryMethod | None = None
    customer_id: int | None = None
    limit: int = 50
    offset: int = 0

    @classmethod
    def from_args(cls, args, *, max_limit: int = 200) -> "OrderFilter":
        """Build from query-string style args (werkzeug MultiDict or plain dict)."""
        limit = parse_int(args.get("limit", 50), "limit")
        offset = parse_int(args.get("offset", 0), "offset")
        if limit <= 0 or offset < 0:
            raise ValidationError("limit must be > 0 and offset >= 0")

        customer_id = args.get("customer_id")
        start = parse_datetime(args.get("start"), "start")
        end = parse_datetime(args.get("end"), "end")
        if start and end and start > end:
            raise ValidationError("start must be before end")

        return cls(
            start=start,
            end=end,
            status=parse_enum(OrderStatus, args.get("status"), "status", required=False),
            source=parse_enum(OrderSource, args.get("source"), "source", required=False),
            payment_method=parse_enum(PaymentMethod, args.get("payment_method"), "payment_method", required=False),
            delivery_method=parse_enum(DeliveryMethod, args.get("delivery_method"), "delivery_method", required=False),
            customer_id=parse_int(customer_id, "customer_id") if customer_id not in (None, "") else None,
            limit=min(limit, max_limit),
            offset=offset,
        )
