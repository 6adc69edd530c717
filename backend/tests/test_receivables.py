"""
Accounts receivable aging tests.
"""

from datetime import date, timedelta

from conftest import order_request
from orderdesk.enums import PaymentMethod
from orderdesk.services import order_service, receivables_service
from orderdesk.time_utils import utcnow


def test_classify_buckets():
    as_of = date(2026, 11, 10)

    assert receivables_service.classify(date(2026, 11, 1), as_of, 7) == ("overdue", 9)
    assert receivables_service.classify(date(2026, 11, 10), as_of, 7) == ("due-soon", 0)
    assert receivables_service.classify(date(2026, 11, 17), as_of, 7) == ("due-soon", -7)
    assert receivables_service.classify(date(2026, 11, 18), as_of, 7) == ("pending", -8)
    assert receivables_service.classify(None, as_of, 7) == ("pending", 0)


def test_list_receivables_only_pending_payment(product_p, product_q):
    today = utcnow().date()
    soon = order_service.create_order(order_request(
        [("prod_p", 1)],
        payment_method=PaymentMethod.CREDIT,
        customer_name="Ana",
        customer_phone="5555-0101",
        payment_due_date=today + timedelta(days=3),
    ))
    later = order_service.create_order(order_request(
        [("prod_q", 1)],
        payment_method=PaymentMethod.CREDIT,
        customer_name="Bruno",
        customer_phone="5555-0303",
        payment_due_date=today + timedelta(days=30),
    ))
    order_service.add_payment(later.id, 550, PaymentMethod.CASH)
    order_service.create_order(order_request([("prod_p", 1)]))

    report = receivables_service.list_receivables()

    assert report["count"] == 2
    assert report["total_outstanding_cents"] == 1000 + 2000
    assert [r["display_id"] for r in report["receivables"]] == [soon.display_id, later.display_id]
    assert report["receivables"][0]["aging"] == "due-soon"
    assert report["receivables"][0]["days_until_due"] == 3
    assert report["receivables"][1]["aging"] == "pending"


def test_list_receivables_as_of_future_marks_overdue(product_p):
    today = utcnow().date()
    order_service.create_order(order_request(
        [("prod_p", 1)],
        payment_method=PaymentMethod.CREDIT,
        customer_name="Ana",
        customer_phone="5555-0101",
        payment_due_date=today + timedelta(days=1),
    ))

    report = receivables_service.list_receivables(as_of=today + timedelta(days=5))

    row = report["receivables"][0]
    assert row["aging"] == "overdue"
    assert row["days_overdue"] == 4
    assert row["days_until_due"] == 0
