"""
Stock ledger tests.

Verifies:
- reserve() is all-or-nothing across lines
- quantity_available never goes negative
- release() and receive() add units back
"""

import pytest

from orderdesk.errors import InsufficientStockError, NotFoundError, ValidationError
from orderdesk.extensions import db
from orderdesk.services import stock_service


def test_quantity_available_reads_stock(product_p):
    assert stock_service.quantity_available("prod_p") == 5


def test_quantity_available_unknown_product_is_zero(db_session):
    assert stock_service.quantity_available("missing") == 0


def test_reserve_decrements_each_line(product_p, product_q):
    stock_service.reserve([("prod_p", 2), ("prod_q", 1)])
    db.session.commit()

    assert stock_service.quantity_available("prod_p") == 3
    assert stock_service.quantity_available("prod_q") == 1


def test_reserve_merges_repeated_products(product_p):
    stock_service.reserve([("prod_p", 2), ("prod_p", 3)])
    db.session.commit()

    assert stock_service.quantity_available("prod_p") == 0


def test_reserve_repeated_products_checked_against_combined_quantity(product_p):
    with pytest.raises(InsufficientStockError) as exc:
        stock_service.reserve([("prod_p", 3), ("prod_p", 3)])

    assert exc.value.requested == 6
    assert exc.value.available == 5


def test_reserve_is_all_or_nothing(product_p, product_q):
    """A failing line leaves every other line untouched."""
    with pytest.raises(InsufficientStockError) as exc:
        stock_service.reserve([("prod_p", 2), ("prod_q", 3)])
    db.session.rollback()

    assert exc.value.product_id == "prod_q"
    assert exc.value.details == {
        "product_id": "prod_q",
        "requested_quantity": 3,
        "quantity_available": 2,
    }
    assert stock_service.quantity_available("prod_p") == 5
    assert stock_service.quantity_available("prod_q") == 2


def test_reserve_exact_stock_reaches_zero(product_q):
    stock_service.reserve([("prod_q", 2)])
    db.session.commit()

    assert stock_service.quantity_available("prod_q") == 0

    with pytest.raises(InsufficientStockError):
        stock_service.reserve([("prod_q", 1)])


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
def test_reserve_rejects_non_positive_or_non_integer_quantities(product_p, quantity):
    with pytest.raises(ValidationError):
        stock_service.reserve([("prod_p", quantity)])

    assert stock_service.quantity_available("prod_p") == 5


def test_release_returns_units(product_p):
    stock_service.reserve([("prod_p", 4)])
    db.session.commit()

    stock_service.release([("prod_p", 4)])
    db.session.commit()

    assert stock_service.quantity_available("prod_p") == 5


def test_receive_adds_units(product_p):
    entry = stock_service.receive("prod_p", 10)
    db.session.commit()

    assert entry.quantity_available == 15
    assert stock_service.quantity_available("prod_p") == 15


def test_receive_unknown_product(db_session):
    with pytest.raises(NotFoundError):
        stock_service.receive("missing", 1)
