"""
HTTP API tests.

Exercises the order, product, customer and health blueprints through the
Flask test client, including the error body shape and status mapping.
"""

from datetime import timedelta

from orderdesk.services import stock_service
from orderdesk.time_utils import utcnow


def _checkout(client, **overrides):
    payload = {
        "source": "online-store",
        "payment_method": "transfer",
        "delivery_method": "pickup",
        "customer": {"name": "Ana Lopez", "phone": "5555-0101"},
        "items": [{"product_id": "prod_p", "quantity": 2}],
    }
    payload.update(overrides)
    return client.post("/api/orders/", json=payload)


# =============================================================================
# ORDERS
# =============================================================================

def test_create_online_order(client, product_p):
    response = _checkout(client)

    assert response.status_code == 201
    order = response.json["order"]
    assert order["status"] == "pending-approval"
    assert order["display_id"] == "ORD-00001"
    assert order["total_cents"] == 2000
    assert order["balance_cents"] == 2000
    assert order["items"][0]["unit_price_cents"] == 1000
    assert order["allowed_events"] == ["approve", "reject"]
    assert stock_service.quantity_available("prod_p") == 3


def test_create_pos_cash_order(client, product_p):
    response = client.post("/api/orders/", json={
        "source": "pos",
        "payment_method": "cash",
        "cash_tendered_cents": 2500,
        "items": [{"product_id": "prod_p", "quantity": 2}],
    })

    assert response.status_code == 201
    order = response.json["order"]
    assert order["status"] == "paid"
    assert order["change_due_cents"] == 500
    assert order["customer_name"] == "Consumidor Final"
    assert order["allowed_events"] == ["cancel"]


def test_insufficient_stock_error_body(client, product_p):
    response = _checkout(client, items=[{"product_id": "prod_p", "quantity": 6}])

    assert response.status_code == 400
    assert response.json == {
        "error": "Insufficient stock for product prod_p: requested 6, available 5",
        "code": "INSUFFICIENT_STOCK",
        "details": {"product_id": "prod_p", "requested_quantity": 6, "quantity_available": 5},
    }


def test_create_order_validation_errors(client, product_p):
    cases = [
        {"items": []},
        {"items": [{"product_id": "prod_p", "quantity": 1.5}]},
        {"items": [{"product_id": "prod_p", "quantity": 0}]},
        {"payment_method": "bitcoin"},
        {"source": None},
        {"shipping_cost_cents": -1},
        {"delivery_method": "delivery"},
    ]
    for overrides in cases:
        response = _checkout(client, **overrides)
        assert response.status_code == 400, overrides
        assert response.json["code"] == "VALIDATION_ERROR"

    assert stock_service.quantity_available("prod_p") == 5


def test_non_object_body_is_rejected(client, product_p):
    response = client.post("/api/orders/", json=[1, 2, 3])

    assert response.status_code == 400


def test_get_order_by_display_id(client, product_p):
    created = _checkout(client).json["order"]

    by_display = client.get(f"/api/orders/{created['display_id']}")
    by_id = client.get(f"/api/orders/{created['id']}")

    assert by_display.status_code == 200
    assert by_display.json == by_id.json


def test_get_missing_order_is_404(client, db_session):
    response = client.get("/api/orders/ORD-00404")

    assert response.status_code == 404
    assert response.json["code"] == "NOT_FOUND"


def test_out_of_range_order_ids_are_404(client, db_session):
    huge = "99999999999999999999999"

    assert client.get(f"/api/orders/{huge}").status_code == 404
    assert client.get(f"/api/orders/{huge}/events").status_code == 404
    assert client.post(f"/api/orders/{huge}/cancel").status_code == 404
    assert client.get(f"/api/customers/{huge}").status_code == 404


def test_payment_method_screen_labels_are_accepted(client, product_p):
    response = _checkout(client, payment_method="transferencia")
    assert response.status_code == 201
    assert response.json["order"]["payment_method"] == "transfer"

    response = client.post(f"/api/orders/{response.json['order']['id']}/approve", json={
        "payment_method": "credito",
    })
    assert response.status_code == 200
    assert response.json["order"]["status"] == "pending-payment"
    assert response.json["order"]["payment_method"] == "credit"


def test_approve_credit_then_pay_over_http(client, product_p):
    order_id = _checkout(client).json["order"]["id"]
    due = (utcnow().date() + timedelta(days=15)).isoformat()

    response = client.post(f"/api/orders/{order_id}/approve", json={
        "payment_method": "credit",
        "payment_due_date": due,
    })
    assert response.status_code == 200
    assert response.json["order"]["status"] == "pending-payment"
    assert response.json["order"]["payment_due_date"] == due

    response = client.post(f"/api/orders/{order_id}/payments", json={
        "amount_cents": 2001, "method": "cash",
    })
    assert response.status_code == 400
    assert response.json["code"] == "OVER_PAYMENT"

    response = client.post(f"/api/orders/{order_id}/payments", json={
        "amount_cents": 2000, "method": "card", "reference": "AUTH-5",
    })
    assert response.status_code == 201
    assert response.json["order"]["status"] == "paid"
    assert response.json["summary"]["balanced"] is True

    summary = client.get(f"/api/orders/{order_id}/payments").json
    assert summary["amount_paid_cents"] == 2000
    assert summary["payments"][0]["reference"] == "AUTH-5"


def test_illegal_transition_is_409(client, product_p):
    order_id = _checkout(client).json["order"]["id"]

    response = client.post(f"/api/orders/{order_id}/cancel")

    assert response.status_code == 409
    assert response.json["code"] == "ILLEGAL_TRANSITION"
    assert response.json["details"] == {"current_status": "pending-approval", "event": "cancel"}


def test_reject_and_events(client, product_p):
    order_id = _checkout(client).json["order"]["id"]

    response = client.post(f"/api/orders/{order_id}/reject")
    assert response.status_code == 200
    assert response.json["order"]["status"] == "cancelled"
    assert response.json["order"]["allowed_events"] == []

    events = client.get(f"/api/orders/{order_id}/events").json["events"]
    assert [ev["event_type"] for ev in events] == ["order.created", "order.rejected"]
    assert events[1]["from_status"] == "pending-approval"
    assert events[1]["to_status"] == "cancelled"


def test_cancel_releases_stock(client, product_p):
    order_id = _checkout(client).json["order"]["id"]
    client.post(f"/api/orders/{order_id}/approve", json={"payment_method": "cash"})

    response = client.post(f"/api/orders/{order_id}/cancel")

    assert response.status_code == 200
    assert response.json["order"]["stock_released"] is True
    assert stock_service.quantity_available("prod_p") == 5


def test_list_orders_with_filters(client, product_p):
    _checkout(client)
    client.post("/api/orders/", json={
        "source": "pos",
        "payment_method": "cash",
        "items": [{"product_id": "prod_p", "quantity": 1}],
    })

    response = client.get("/api/orders/?status=paid")
    assert response.status_code == 200
    assert response.json["count"] == 1
    assert response.json["orders"][0]["source"] == "pos"

    assert client.get("/api/orders/?limit=1").json["count"] == 1
    assert client.get("/api/orders/?status=shipped").status_code == 400
    assert client.get("/api/orders/?limit=abc").status_code == 400


def test_receivables_endpoint(client, product_p):
    client.post("/api/orders/", json={
        "source": "pos",
        "payment_method": "credit",
        "customer": {"name": "Ana", "phone": "5555-0101"},
        "items": [{"product_id": "prod_p", "quantity": 1}],
    })

    response = client.get("/api/orders/receivables")

    assert response.status_code == 200
    assert response.json["count"] == 1
    assert response.json["total_outstanding_cents"] == 1000


# =============================================================================
# PRODUCTS
# =============================================================================

def test_product_crud_and_stock(client, db_session):
    response = client.post("/api/products/", json={
        "id": "prod_new", "name": "Lip Balm", "price_cents": 450, "initial_stock": 4,
    })
    assert response.status_code == 201
    assert response.json["product"]["quantity_available"] == 4

    assert client.post("/api/products/", json={
        "id": "prod_new", "name": "Dup", "price_cents": 1,
    }).status_code == 409

    response = client.patch("/api/products/prod_new", json={"price_cents": 500})
    assert response.status_code == 200
    assert response.json["product"]["price_cents"] == 500

    response = client.post("/api/products/prod_new/stock/receive", json={"quantity": 6})
    assert response.status_code == 200
    assert response.json["stock"]["quantity_available"] == 10

    assert client.get("/api/products/prod_new/stock").json["quantity_available"] == 10
    assert [p["id"] for p in client.get("/api/products/").json["products"]] == ["prod_new"]
    assert client.get("/api/products/missing").status_code == 404


def test_product_boolean_fields_are_parsed_strictly(client, db_session):
    response = client.post("/api/products/", json={
        "id": "prod_off", "name": "Retired Toner", "price_cents": 300, "is_active": "false",
    })
    assert response.status_code == 201
    assert response.json["product"]["is_active"] is False

    response = client.patch("/api/products/prod_off", json={"is_active": True})
    assert response.json["product"]["is_active"] is True

    response = client.patch("/api/products/prod_off", json={"is_active": "maybe"})
    assert response.status_code == 400
    assert client.get("/api/products/prod_off").json["product"]["is_active"] is True


def test_receive_stock_rejects_non_object_body(client, product_p):
    response = client.post("/api/products/prod_p/stock/receive", json=[1])

    assert response.status_code == 400
    assert stock_service.quantity_available("prod_p") == 5


def test_product_validation(client, db_session):
    response = client.post("/api/products/", json={"id": "x", "name": "X", "price_cents": -5})
    assert response.status_code == 400

    response = client.post("/api/products/", json={"id": "x", "name": "X"})
    assert response.status_code == 400


# =============================================================================
# CUSTOMERS / HEALTH
# =============================================================================

def test_customers_endpoints(client, product_p):
    customer_id = _checkout(client).json["order"]["customer_id"]

    listing = client.get("/api/customers/").json["customers"]
    assert [c["id"] for c in listing] == [customer_id]
    assert client.get("/api/customers/?phone=5555-0101").json["customers"][0]["name"] == "Ana Lopez"

    detail = client.get(f"/api/customers/{customer_id}").json
    assert detail["customer"]["order_count"] == 1
    assert len(detail["recent_orders"]) == 1

    assert client.get("/api/customers/9999").status_code == 404


def test_health(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json["checks"]["database"]["status"] == "healthy"


def test_cors_headers_for_known_origin(client, db_session):
    response = client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    response = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers
