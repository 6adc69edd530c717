"""
Display id allocation tests.
"""

import re

import pytest

from conftest import order_request
from orderdesk.errors import InsufficientStockError
from orderdesk.extensions import db
from orderdesk.services import display_id_service, order_service


def test_sequential_ids_are_padded_and_increasing(product_p):
    orders = [order_service.create_order(order_request([("prod_p", 1)])) for _ in range(3)]

    assert [o.display_id for o in orders] == ["ORD-00001", "ORD-00002", "ORD-00003"]


def test_failed_order_does_not_consume_a_number(product_p):
    order_service.create_order(order_request([("prod_p", 1)]))
    with pytest.raises(InsufficientStockError):
        order_service.create_order(order_request([("prod_p", 50)]))
    order = order_service.create_order(order_request([("prod_p", 1)]))

    assert order.display_id == "ORD-00002"


def test_next_sequence_number_per_key(db_session):
    assert display_id_service.next_sequence_number("A") == 1
    assert display_id_service.next_sequence_number("A") == 2
    assert display_id_service.next_sequence_number("B") == 1
    db.session.commit()

    assert display_id_service.next_sequence_number("A") == 3


def test_format_sequential():
    assert display_id_service.format_sequential("ORD", 42) == "ORD-00042"
    assert display_id_service.format_sequential("WEB", 123456, pad=5) == "WEB-123456"


def test_prefix_and_pad_from_config(product_p, app, monkeypatch):
    monkeypatch.setitem(app.config, "DISPLAY_ID_PREFIX", "POS")
    monkeypatch.setitem(app.config, "DISPLAY_ID_PAD", 3)

    order = order_service.create_order(order_request([("prod_p", 1)]))

    assert order.display_id == "POS-001"


def test_random_scheme(product_p, app, monkeypatch):
    monkeypatch.setitem(app.config, "DISPLAY_ID_SCHEME", "random")

    first = order_service.create_order(order_request([("prod_p", 1)]))
    second = order_service.create_order(order_request([("prod_p", 1)]))

    pattern = re.compile(r"^[A-Z0-9]{4}-\d{6}$")
    assert pattern.match(first.display_id)
    assert pattern.match(second.display_id)
    assert first.display_id != second.display_id


def test_random_display_id_format():
    assert re.match(r"^[A-Z0-9]{4}-\d{6}$", display_id_service.random_display_id())
