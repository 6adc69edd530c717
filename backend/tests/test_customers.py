"""
Customer aggregate tests.

Customers are keyed by phone; walk-in sales never create one.
"""

import pytest

from conftest import order_request
from orderdesk.enums import OrderSource, PaymentMethod
from orderdesk.errors import NotFoundError, ValidationError
from orderdesk.extensions import db
from orderdesk.models import Customer
from orderdesk.services import customer_service, order_service


ADDRESS = {
    "department": "Cortes",
    "municipality": "San Pedro Sula",
    "colony": "Col. Trejo",
    "exact_address": "Casa 12",
}


def test_orders_with_same_phone_share_one_customer(product_p):
    first = order_service.create_order(order_request(
        [("prod_p", 1)], customer_name="Ana", customer_phone="5555-0101",
    ))
    second = order_service.create_order(order_request(
        [("prod_p", 2)], customer_name="Ana Lopez", customer_phone=" 5555-0101 ",
    ))

    assert first.customer_id == second.customer_id
    customer = customer_service.get_customer(first.customer_id)
    assert customer.name == "Ana Lopez"
    assert customer.order_count == 2
    assert customer.total_spent_cents == 3000
    assert customer.last_order_at is not None


def test_address_only_overwritten_when_supplied(product_p):
    order = order_service.create_order(order_request(
        [("prod_p", 1)], customer_name="Ana", customer_phone="5555-0101", customer_address=ADDRESS,
    ))
    order_service.create_order(order_request(
        [("prod_p", 1)], customer_name="Ana", customer_phone="5555-0101",
    ))

    assert customer_service.get_customer(order.customer_id).address == ADDRESS


def test_cancel_does_not_revert_lifetime_spend(product_p):
    order = order_service.create_order(order_request(
        [("prod_p", 2)], customer_name="Ana", customer_phone="5555-0101",
    ))
    order_service.cancel_order(order.id)

    customer = customer_service.get_customer(order.customer_id)
    assert customer.order_count == 1
    assert customer.total_spent_cents == 2000


def test_online_order_counts_at_creation(product_p):
    order = order_service.create_order(order_request(
        [("prod_p", 1)],
        source=OrderSource.ONLINE_STORE,
        payment_method=PaymentMethod.CASH,
        customer_name="Ana",
        customer_phone="5555-0101",
    ))

    assert customer_service.get_customer(order.customer_id).total_spent_cents == 1000


def test_resolve_without_phone_is_walk_in(db_session):
    assert customer_service.resolve(None, "Someone") is None
    assert customer_service.resolve("   ", "Someone") is None
    assert db.session.query(Customer).count() == 0


def test_resolve_requires_name_with_phone(db_session):
    with pytest.raises(ValidationError):
        customer_service.resolve("5555-0101", "  ")


def test_record_purchase_unknown_customer(db_session):
    with pytest.raises(NotFoundError):
        customer_service.record_purchase(999, 100)


def test_list_customers_sorted_by_spend_and_searchable(product_p, product_q):
    order_service.create_order(order_request(
        [("prod_p", 1)], customer_name="Ana", customer_phone="5555-0101",
    ))
    order_service.create_order(order_request(
        [("prod_q", 1)], customer_name="Bruno", customer_phone="5555-0303",
    ))

    assert [c.name for c in customer_service.list_customers()] == ["Bruno", "Ana"]
    assert [c.name for c in customer_service.list_customers(search="0101")] == ["Ana"]
    assert customer_service.find_by_phone("5555-0303").name == "Bruno"
    assert customer_service.find_by_phone("0000") is None
