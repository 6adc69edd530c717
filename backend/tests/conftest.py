"""
Pytest fixtures for order desk backend tests.

Provides test database setup, catalog fixtures, and test client.
"""

import pytest

from orderdesk import create_app
from orderdesk.enums import OrderSource, PaymentMethod
from orderdesk.extensions import db
from orderdesk.models import Product, StockEntry
from orderdesk.services.order_schemas import NewOrderRequest, OrderLineRequest


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DISPLAY_ID_SCHEME': 'sequential',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_product(session, product_id: str, price_cents: int, stock: int, name: str = None, **kwargs):
    product = Product(
        id=product_id,
        name=name or f"Product {product_id}",
        price_cents=price_cents,
        **kwargs,
    )
    product.stock = StockEntry(quantity_available=stock)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product_p(db_session):
    """Product P: 10.00 each, 5 in stock."""
    return make_product(db_session, "prod_p", 1000, 5, name="Glow Serum")


@pytest.fixture(scope='function')
def product_q(db_session):
    """Product Q: 25.50 each, 2 in stock."""
    return make_product(db_session, "prod_q", 2550, 2, name="Night Cream")


def order_request(
    items,
    source=OrderSource.POS,
    payment_method=PaymentMethod.CASH,
    **kwargs,
) -> NewOrderRequest:
    """Build a NewOrderRequest from [(product_id, quantity)] pairs."""
    return NewOrderRequest(
        items=[OrderLineRequest(product_id=pid, quantity=qty) for pid, qty in items],
        source=source,
        payment_method=payment_method,
        **kwargs,
    )
