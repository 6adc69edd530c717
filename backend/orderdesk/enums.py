# Overview: Closed value sets for order status, channels and payment methods.

from __future__ import annotations

import enum


class _ValueEnum(str, enum.Enum):
    """String-valued enum that serializes to its wire value."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class OrderStatus(_ValueEnum):
    PENDING_APPROVAL = "pending-approval"
    PENDING_PAYMENT = "pending-payment"
    PAID = "paid"
    CANCELLED = "cancelled"


class OrderSource(_ValueEnum):
    POS = "pos"
    ONLINE_STORE = "online-store"


class PaymentMethod(_ValueEnum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    CREDIT = "credit"

    @classmethod
    def _missing_(cls, value):
        # Labels used by the storefront and POS screens
        if isinstance(value, str):
            return _PAYMENT_METHOD_LABELS.get(value.strip().lower())
        return None

    @property
    def requires_reference(self) -> bool:
        return self in (PaymentMethod.CARD, PaymentMethod.TRANSFER)

    @property
    def is_tender(self) -> bool:
        """Credit defers payment; every other method settles money."""
        return self is not PaymentMethod.CREDIT


_PAYMENT_METHOD_LABELS = {
    "efectivo": PaymentMethod.CASH,
    "tarjeta": PaymentMethod.CARD,
    "transferencia": PaymentMethod.TRANSFER,
    "credito": PaymentMethod.CREDIT,
    "cr\u00e9dito": PaymentMethod.CREDIT,
}


class DeliveryMethod(_ValueEnum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class OrderEventType(_ValueEnum):
    CREATED = "order.created"
    APPROVED = "order.approved"
    REJECTED = "order.rejected"
    PAYMENT_RECORDED = "order.payment_recorded"
    CANCELLED = "order.cancelled"


# Lifecycle events named in IllegalTransitionError
EVENT_APPROVE = "approve"
EVENT_REJECT = "reject"
EVENT_ADD_PAYMENT = "add_payment"
EVENT_CANCEL = "cancel"
