# Overview: Error taxonomy raised by the order services and mapped to HTTP by routes.

from __future__ import annotations


class OrderDeskError(Exception):
    """Base for business errors. Carries a machine code and structured details."""

    code = "ORDER_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(OrderDeskError):
    """400-level input problem (missing or malformed fields)."""

    code = "VALIDATION_ERROR"


class InsufficientStockError(OrderDeskError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={
                "product_id": product_id,
                "requested_quantity": requested,
                "quantity_available": available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class OverPaymentError(OrderDeskError):
    code = "OVER_PAYMENT"

    def __init__(self, amount_cents: int, balance_cents: int):
        super().__init__(
            f"Payment of {amount_cents} cents exceeds remaining balance of {balance_cents} cents",
            details={"amount_cents": amount_cents, "balance_cents": balance_cents},
        )
        self.amount_cents = amount_cents
        self.balance_cents = balance_cents


class IllegalTransitionError(OrderDeskError):
    """409-level: the event is not legal for the order's current status."""

    code = "ILLEGAL_TRANSITION"
    http_status = 409

    def __init__(self, current_status: str, event: str):
        super().__init__(
            f"Cannot {event} an order in status {current_status}",
            details={"current_status": current_status, "event": event},
        )
        self.current_status = current_status
        self.event = event


class NotFoundError(OrderDeskError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, ref):
        super().__init__(f"{entity} {ref} not found", details={"entity": entity, "ref": ref})
        self.entity = entity
        self.ref = ref


class ConflictError(OrderDeskError):
    """409-level business rule conflict (e.g., duplicate product code)."""

    code = "CONFLICT"
    http_status = 409
