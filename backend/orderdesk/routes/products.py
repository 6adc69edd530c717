# Overview: Flask API routes for catalog products and stock; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import OrderDeskError, ValidationError
from ..services import catalog_service, stock_service


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("/")
def create_product_route():
    """
    Create a product with its opening stock.

    Request body:
    {
        "id": "prod_001", "name": "Glow Serum", "price_cents": 3500,
        "category": "skincare", "image": "https://...", "initial_stock": 15
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        initial_stock = data.pop("initial_stock", 0)
        product = catalog_service.create_product(data, initial_stock=initial_stock)
        return jsonify({"product": product.to_dict()}), 201

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/")
def list_products_route():
    category = request.args.get("category")
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    products = catalog_service.list_products(category=category, include_inactive=include_inactive)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        product = catalog_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


@products_bp.patch("/<product_id>")
def update_product_route(product_id: str):
    """Edit catalog fields. Orders already placed keep their price/name snapshot."""
    try:
        data = request.get_json(silent=True) or {}
        product = catalog_service.update_product(product_id, data)
        return jsonify({"product": product.to_dict()}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>/stock")
def get_stock_route(product_id: str):
    """
    Advisory stock read, used to disable "add to cart" on sold-out items.
    Order creation re-checks stock atomically.
    """
    try:
        catalog_service.get_product(product_id)
        return jsonify({
            "product_id": product_id,
            "quantity_available": stock_service.quantity_available(product_id),
        }), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


@products_bp.post("/<product_id>/stock/receive")
def receive_stock_route(product_id: str):
    """
    Stock intake.

    Request body: {"quantity": 10}
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        if data.get("quantity") is None:
            raise ValidationError("quantity is required")
        entry = catalog_service.receive_stock(product_id, data.get("quantity"))
        return jsonify({"stock": entry.to_dict()}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to receive stock")
        return jsonify({"error": "Internal server error"}), 500
