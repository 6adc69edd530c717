"""
Payment ledger tests.

Verifies:
- Partial payments reduce the balance; the last one marks the order paid
- Overpayment is rejected without touching the ledger
- card/transfer payments require a reference; credit is not a tender
"""

import pytest

from conftest import order_request
from orderdesk.enums import OrderStatus, PaymentMethod
from orderdesk.errors import OverPaymentError, ValidationError
from orderdesk.services import order_service, payment_service
from orderdesk.validation import parse_enum


@pytest.fixture
def credit_sale(product_p):
    """POS credit sale of 2 x P: total 20.00, nothing paid."""
    return order_service.create_order(order_request(
        [("prod_p", 2)],
        payment_method=PaymentMethod.CREDIT,
        customer_name="Luis Perez",
        customer_phone="5555-0202",
    ))


def test_partial_payments_until_paid(credit_sale):
    order = order_service.add_payment(credit_sale.id, 500, PaymentMethod.CASH)
    assert order.status is OrderStatus.PENDING_PAYMENT
    assert order.balance_cents == 1500

    order = order_service.add_payment(credit_sale.id, 1000, PaymentMethod.CARD, reference="AUTH-1")
    assert order.status is OrderStatus.PENDING_PAYMENT
    assert order.balance_cents == 500

    order = order_service.add_payment(credit_sale.id, 500, PaymentMethod.TRANSFER, reference="TRX-2")
    assert order.status is OrderStatus.PAID
    assert order.balance_cents == 0
    assert [p.amount_cents for p in order.payments] == [500, 1000, 500]
    assert order.amount_paid_cents == order.total_cents


def test_overpayment_is_rejected(credit_sale):
    order_service.add_payment(credit_sale.id, 1500, PaymentMethod.CASH)

    with pytest.raises(OverPaymentError) as exc:
        order_service.add_payment(credit_sale.id, 501, PaymentMethod.CASH)

    assert exc.value.details == {"amount_cents": 501, "balance_cents": 500}
    order = order_service.get_order(credit_sale.id)
    assert order.balance_cents == 500
    assert len(order.payments) == 1


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_amount_is_rejected(credit_sale, amount):
    with pytest.raises(ValidationError):
        order_service.add_payment(credit_sale.id, amount, PaymentMethod.CASH)


@pytest.mark.parametrize("method", [PaymentMethod.CARD, PaymentMethod.TRANSFER])
def test_reference_required_for_card_and_transfer(credit_sale, method):
    with pytest.raises(ValidationError):
        order_service.add_payment(credit_sale.id, 500, method)

    with pytest.raises(ValidationError):
        order_service.add_payment(credit_sale.id, 500, method, reference="   ")


def test_credit_is_not_a_tender(credit_sale):
    with pytest.raises(ValidationError):
        order_service.add_payment(credit_sale.id, 500, PaymentMethod.CREDIT)


def test_payment_summary(credit_sale):
    order = order_service.add_payment(credit_sale.id, 750, PaymentMethod.CASH)

    summary = payment_service.get_payment_summary(order)

    assert summary["total_cents"] == 2000
    assert summary["amount_paid_cents"] == 750
    assert summary["balance_cents"] == 1250
    assert summary["balanced"] is True
    assert summary["status"] == "pending-payment"
    assert summary["payments"][0]["method"] == "cash"


def test_validate_tender_normalizes_reference():
    assert payment_service.validate_tender(PaymentMethod.CARD, "  AUTH-9 ") == "AUTH-9"
    assert payment_service.validate_tender(PaymentMethod.CASH, "") is None


@pytest.mark.parametrize("label,method", [
    ("efectivo", PaymentMethod.CASH),
    ("tarjeta", PaymentMethod.CARD),
    ("transferencia", PaymentMethod.TRANSFER),
    ("credito", PaymentMethod.CREDIT),
    ("Crédito", PaymentMethod.CREDIT),
    ("CASH", PaymentMethod.CASH),
])
def test_screen_labels_map_to_payment_methods(label, method):
    assert parse_enum(PaymentMethod, label, "payment_method") is method


def test_unknown_payment_label_is_rejected():
    with pytest.raises(ValidationError):
        parse_enum(PaymentMethod, "bitcoin", "payment_method")
