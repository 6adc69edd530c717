# Overview: Flask API routes for the customer aggregate; read-only lookups.

from flask import Blueprint, request, jsonify

from ..errors import OrderDeskError
from ..services import customer_service, order_service
from ..services.order_schemas import OrderFilter
from ..validation import parse_int


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/")
def list_customers_route():
    """
    Customers with at least one order, highest lifetime spend first.

    Query params: q (name/phone search), phone (exact lookup), limit, offset
    """
    try:
        phone = request.args.get("phone")
        if phone:
            customer = customer_service.find_by_phone(phone)
            customers = [customer] if customer else []
        else:
            customers = customer_service.list_customers(
                search=request.args.get("q"),
                limit=min(parse_int(request.args.get("limit", 50), "limit"), 200),
                offset=parse_int(request.args.get("offset", 0), "offset"),
            )
        return jsonify({"customers": [c.to_dict() for c in customers]}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    """Customer with their most recent orders."""
    try:
        customer = customer_service.get_customer(customer_id)
        orders = order_service.list_orders(OrderFilter(customer_id=customer.id, limit=20))
        return jsonify({
            "customer": customer.to_dict(),
            "recent_orders": [o.to_dict() for o in orders],
        }), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
