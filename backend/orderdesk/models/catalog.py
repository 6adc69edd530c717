from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog entry used to price new orders.

    Order lines copy name/price/image from here at creation time; later
    catalog edits never touch existing orders.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_active", "category", "is_active"),
    )

    # Store-assigned product code (e.g. "prod_001")
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(64), nullable=True)
    image = db.Column(db.String(512), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    stock = db.relationship("StockEntry", uselist=False, back_populates="product", lazy="joined")

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} name={self.name!r} price_cents={self.price_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "image": self.image,
            "price_cents": self.price_cents,
            "is_active": self.is_active,
            "quantity_available": self.stock.quantity_available if self.stock else 0,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockEntry(db.Model):
    """
    Available quantity for one product.

    INVARIANT: quantity_available >= 0, enforced both by the conditional
    decrement in stock_service.reserve and by the CHECK constraint.
    """
    __tablename__ = "stock_entries"
    __table_args__ = (
        db.CheckConstraint("quantity_available >= 0", name="ck_stock_entries_non_negative"),
    )

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), primary_key=True)
    quantity_available = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", back_populates="stock")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity_available": self.quantity_available,
            "updated_at": to_utc_z(self.updated_at),
        }
