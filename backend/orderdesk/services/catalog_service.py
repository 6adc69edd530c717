# Overview: Catalog products that price new orders, plus stock intake.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, StockEntry
from ..validation import ModelValidationPolicy, enforce_rules_product, parse_int, validate_payload
from . import stock_service
from .concurrency import begin_write, run_with_retry


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"id", "name", "description", "category", "image", "price_cents", "is_active"},
    required_on_create={"id", "name", "price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "category", "image", "price_cents", "is_active"},
)


def create_product(payload: dict, initial_stock: int = 0) -> Product:
    """
    Create a catalog product and its stock row.

    Raises:
        ValidationError: invalid payload
        ConflictError: product id already exists
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    initial_stock = parse_int(initial_stock, "initial_stock")
    if initial_stock < 0:
        raise ValidationError("initial_stock must be >= 0")

    def _op():
        begin_write()
        if db.session.get(Product, patch["id"]) is not None:
            raise ConflictError(f"Product {patch['id']} already exists", details={"product_id": patch["id"]})

        product = Product(**patch)
        product.stock = StockEntry(quantity_available=initial_stock)
        db.session.add(product)
        db.session.commit()
        return product

    return run_with_retry(_op)


def update_product(product_id: str, payload: dict) -> Product:
    """Edit catalog data. Existing orders keep their own snapshot."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        begin_write()
        product = get_product(product_id)
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    return run_with_retry(_op)


def get_product(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def list_products(category: str | None = None, include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if category:
        query = query.filter(Product.category == category)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name, Product.id).all()


def receive_stock(product_id: str, quantity) -> StockEntry:
    """Add delivered units to a product's available stock."""
    quantity = parse_int(quantity, "quantity")

    def _op():
        begin_write()
        entry = stock_service.receive(product_id, quantity)
        db.session.commit()
        return entry

    return run_with_retry(_op)
