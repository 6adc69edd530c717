# Overview: Flask API routes for order operations; parses input and returns JSON responses.

# backend/orderdesk/routes/orders.py
"""
Order API Routes

Used by the checkout page, the POS screen, and the admin approval screen.

ERROR MAPPING:
- ValidationError, InsufficientStock, OverPayment -> 400
- NotFound -> 404
- IllegalTransition -> 409 (the UI offered an action the status does not allow)
- anything else -> 500, logged
"""

from flask import Blueprint, request, jsonify, current_app

from ..enums import PaymentMethod
from ..errors import OrderDeskError, ValidationError
from ..services import order_service, payment_service, receivables_service
from ..services.ledger_service import get_order_events
from ..services.order_schemas import NewOrderRequest, OrderFilter
from ..validation import parse_cents, parse_date, parse_enum, parse_optional_str


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _order_payload(order) -> dict:
    data = order.to_dict()
    data["allowed_events"] = order_service.allowed_events(order.status)
    return data


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


# =============================================================================
# CREATION
# =============================================================================

@orders_bp.post("/")
def create_order_route():
    """
    Create an order from the checkout or POS.

    Request body:
    {
        "source": "pos" | "online-store",
        "payment_method": "cash" | "card" | "transfer" | "credit",
        "payment_reference": "AUTH-123",        (card/transfer at POS)
        "payment_due_date": "2026-11-01",       (POS credit, optional)
        "cash_tendered_cents": 5000,            (POS cash, optional)
        "delivery_method": "pickup" | "delivery",
        "shipping_cost_cents": 0,
        "customer": {"name": "...", "phone": "...", "address": {...}},
        "items": [{"product_id": "prod_001", "quantity": 2}]
    }

    Returns:
        201: order created
        400: validation error or insufficient stock
    """
    try:
        order_request = NewOrderRequest.from_payload(_json_body())
        order = order_service.create_order(order_request)
        return jsonify({"order": _order_payload(order)}), 201

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# QUERIES
# =============================================================================

@orders_bp.get("/")
def list_orders_route():
    """
    List orders, newest first.

    Query params: status, source, payment_method, delivery_method,
    customer_id, start, end (ISO-8601), limit, offset
    """
    try:
        order_filter = OrderFilter.from_args(
            request.args,
            max_limit=current_app.config.get("ORDER_LIST_MAX_LIMIT", 200),
        )
        orders = order_service.list_orders(order_filter)
        return jsonify({
            "orders": [_order_payload(o) for o in orders],
            "count": len(orders),
            "limit": order_filter.limit,
            "offset": order_filter.offset,
        }), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/receivables")
def receivables_route():
    """
    Accounts receivable: pending-payment orders aged against their due dates.

    Query params: as_of (YYYY-MM-DD, default today)
    """
    try:
        as_of = parse_date(request.args.get("as_of"), "as_of")
        return jsonify(receivables_service.list_receivables(as_of)), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load receivables")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<order_ref>")
def get_order_route(order_ref: str):
    """Get an order by internal id or display id (e.g. ORD-00042)."""
    try:
        order = order_service.get_order(order_ref)
        return jsonify({"order": _order_payload(order)}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


@orders_bp.get("/<int:order_id>/payments")
def get_payments_route(order_id: int):
    """Payment summary: total, paid, balance, and payment list."""
    try:
        order = order_service.get_order(order_id)
        return jsonify(payment_service.get_payment_summary(order)), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


@orders_bp.get("/<int:order_id>/events")
def get_events_route(order_id: int):
    """Lifecycle history of an order."""
    try:
        order = order_service.get_order(order_id)
        events = get_order_events(order.id)
        return jsonify({"order_id": order.id, "events": [ev.to_dict() for ev in events]}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status


# =============================================================================
# TRANSITIONS
# =============================================================================

@orders_bp.post("/<int:order_id>/approve")
def approve_order_route(order_id: int):
    """
    Approve a pending-approval (online) order.

    Request body:
    {
        "payment_method": "cash" | "card" | "transfer" | "credit",
        "payment_due_date": "2026-11-01",   (credit only, optional)
        "payment_reference": "TRX-991"      (required for card/transfer)
    }
    """
    try:
        data = _json_body()
        order = order_service.approve_order(
            order_id,
            payment_method=parse_enum(PaymentMethod, data.get("payment_method"), "payment_method"),
            due_date=parse_date(data.get("payment_due_date"), "payment_due_date"),
            reference=parse_optional_str(data.get("payment_reference"), "payment_reference", max_length=128),
        )
        return jsonify({"order": _order_payload(order)}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to approve order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/reject")
def reject_order_route(order_id: int):
    """Reject a pending-approval order. Reserved stock is not returned."""
    try:
        order = order_service.reject_order(order_id)
        return jsonify({"order": _order_payload(order)}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to reject order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/payments")
def add_payment_route(order_id: int):
    """
    Record a payment against a pending-payment order.

    Request body:
    {
        "amount_cents": 2500,
        "method": "cash" | "card" | "transfer",
        "reference": "AUTH-12345"   (required for card/transfer)
    }
    """
    try:
        data = _json_body()
        if data.get("amount_cents") is None:
            raise ValidationError("amount_cents is required")

        order = order_service.add_payment(
            order_id,
            amount_cents=parse_cents(data.get("amount_cents"), "amount_cents", allow_zero=False),
            method=parse_enum(PaymentMethod, data.get("method"), "method"),
            reference=parse_optional_str(data.get("reference"), "reference", max_length=128),
        )
        return jsonify({
            "order": _order_payload(order),
            "summary": payment_service.get_payment_summary(order),
        }), 201

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add payment")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/cancel")
def cancel_order_route(order_id: int):
    """Cancel a pending-payment or paid order and return its stock."""
    try:
        order = order_service.cancel_order(order_id)
        return jsonify({"order": _order_payload(order)}), 200

    except OrderDeskError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500
