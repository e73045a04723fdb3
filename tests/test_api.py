import json
from datetime import date, timedelta

import pytest

from conftest import gateway_payload, make_booking, make_user
from tourpay.extensions import db
from tourpay.models import Booking, SettlementTransaction

WEBHOOK = "/api/v1/payments/webhook"


@pytest.fixture
def booking(admin, guide, customer):
    return make_booking(customer, guide, tour_date=date.today() + timedelta(days=30))


def test_webhook_settles_booking(client, booking, published):
    response = client.post(WEBHOOK, json=gateway_payload())

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Payment processed"
    assert body["bookingId"] == str(booking.id)
    assert body["transactionId"]
    assert body["processedAt"]
    assert db.session.get(Booking, booking.id).status == "confirmed"


def test_webhook_redelivery_answers_200(client, booking, published):
    client.post(WEBHOOK, json=gateway_payload())
    response = client.post(WEBHOOK, json=gateway_payload())

    assert response.status_code == 200
    assert response.get_json()["message"] == "Transaction already processed"
    assert SettlementTransaction.query.count() == 1


def test_webhook_unresolved_still_answers_200(client, booking, published):
    response = client.post(WEBHOOK, json=gateway_payload(content="Coffee money"))

    assert response.status_code == 200
    assert response.get_json() == {
        "success": False,
        "message": "No payment code found",
        "outcome": "unresolved",
    }


def test_webhook_skips_outgoing_transfers(client, booking, published):
    response = client.post(WEBHOOK, json=gateway_payload(transferType="out"))

    assert response.status_code == 200
    assert response.get_json()["message"] == "Money-out transaction skipped"


@pytest.mark.parametrize(
    "body",
    [
        gateway_payload(id=None),
        gateway_payload(transferAmount=0),
        gateway_payload(transferType="sideways"),
        {},
    ],
)
def test_webhook_rejects_malformed_payloads(client, booking, body):
    response = client.post(WEBHOOK, json=body)

    assert response.status_code == 400
    assert "error" in response.get_json()
    assert SettlementTransaction.query.count() == 0


def test_webhook_rejects_non_json(client, app):
    response = client.post(WEBHOOK, data="id=1", content_type="text/plain")
    assert response.status_code == 400


def test_cancel_requires_login(client, booking):
    response = client.put(f"/api/v1/bookings/{booking.id}/cancel", json={})
    assert response.status_code == 401


def test_customer_cancels_own_booking(app, booking, customer):
    client = app.test_client(user=customer)

    response = client.put(
        f"/api/v1/bookings/{booking.id}/cancel",
        json={
            "cancellationReason": "Sick",
            "refundBankName": "Vietcombank",
            "refundBankCode": "VCB",
            "refundBankAccount": "0071000123456",
            "refundAccountName": "TRAVELLER",
        },
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "cancelled"
    assert body["refundId"] is not None
    assert body["refundAmount"] == "4000000.00"
    assert body["refundPercentage"] == "100.00"

    again = client.put(f"/api/v1/bookings/{booking.id}/cancel", json={})
    assert again.status_code == 409
    assert again.get_json() == {"error": "Booking is already cancelled."}


def test_cancel_unknown_booking(app, customer):
    response = app.test_client(user=customer).put("/api/v1/bookings/999/cancel", json={})
    assert response.status_code == 404


def test_other_customer_cannot_cancel(app, booking):
    stranger = make_user("customer")
    response = app.test_client(user=stranger).put(f"/api/v1/bookings/{booking.id}/cancel", json={})

    assert response.status_code == 403
    assert db.session.get(Booking, booking.id).status == "pending"


def test_calculate_refund_quote(app, booking, customer):
    response = app.test_client(user=customer).post(f"/api/v1/bookings/{booking.id}/calculate-refund")

    assert response.status_code == 200
    body = response.get_json()
    assert body["canRefund"] is True
    assert body["refundPercentage"] == "100"
    assert body["daysBeforeTour"] >= 29


def test_refund_policy_is_public(client, app):
    response = client.get("/api/v1/refunds/policy")

    assert response.status_code == 200
    tiers = response.get_json()
    assert [tier["refundPercentage"] for tier in tiers] == ["100", "50", "0"]


def test_transactions_list_is_admin_only(app, booking, admin, customer, published):
    app.test_client().post(WEBHOOK, json=gateway_payload())

    assert app.test_client(user=customer).get("/api/v1/transactions").status_code == 403

    response = app.test_client(user=admin).get("/api/v1/transactions?status=completed&pageSize=500")
    assert response.status_code == 200
    body = response.get_json()
    assert body["pagination"]["totalCount"] == 1
    assert body["pagination"]["pageSize"] == 100
    assert body["data"][0]["paymentReference"] == "TK20251104001"


def test_provider_sees_own_revenue(app, booking, guide, published):
    app.test_client().post(WEBHOOK, json=gateway_payload())

    response = app.test_client(user=guide).get("/api/v1/revenues/me")

    assert response.status_code == 200
    body = response.get_json()
    assert len(body["data"]) == 1
    assert body["totals"]["net"] == "3400000.00"
    assert body["totals"]["commission"] == "600000.00"


def test_revenue_statistics_for_admin(app, booking, admin, published):
    app.test_client().post(WEBHOOK, json=gateway_payload())

    response = app.test_client(user=admin).get("/api/v1/revenues/statistics")

    assert response.status_code == 200
    roles = {row["role"]: row for row in response.get_json()}
    assert roles["platform"]["gross"] == "4000000.00"
    assert roles["provider"]["net"] == "3400000.00"


def test_payment_status_endpoint(app, booking, customer, published):
    app.test_client().post(WEBHOOK, json=gateway_payload())

    response = app.test_client(user=customer).get("/api/v1/payments/status/TK20251104001")

    assert response.status_code == 200
    assert response.get_json()["paymentStatus"] == "paid"
    assert app.test_client(user=customer).get("/api/v1/payments/status/TK1").status_code == 404


def test_notifications_feed(app, booking, customer, published):
    app.test_client().post(WEBHOOK, json=gateway_payload())
    client = app.test_client(user=customer)

    feed = client.get("/api/v1/notifications/me").get_json()
    assert feed["unread"] == 1
    assert feed["items"][0]["title"] == "Booking confirmed"

    assert client.post("/api/v1/notifications/me/read").status_code == 200
    assert client.get("/api/v1/notifications/me").get_json()["unread"] == 0


def test_admin_lists_refunds(app, booking, admin, customer):
    app.test_client(user=customer).put(f"/api/v1/bookings/{booking.id}/cancel", json={})

    assert app.test_client(user=customer).get("/api/v1/refunds").status_code == 403
    rows = app.test_client(user=admin).get("/api/v1/refunds?status=pending").get_json()
    assert len(rows) == 1
    assert rows[0]["bookingNumber"] == "TK20251104001"
    assert rows[0]["refundPercentage"] == "100.00"


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_webhook_rejects_non_finite_amounts(client, booking, published, literal):
    body = json.dumps(gateway_payload(transferAmount=0)).replace('"transferAmount": 0', f'"transferAmount": {literal}')

    response = client.post(WEBHOOK, data=body, content_type="application/json")

    assert response.status_code == 400
    assert SettlementTransaction.query.count() == 0
    assert db.session.get(Booking, booking.id).status == "pending"
