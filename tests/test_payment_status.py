"""
Payment Status Polling Tests
============================
GET /api/orders/payment-status/{pending_order_id}/
"""

import pytest
from django.test import override_settings

from apps.payments.models import PendingPayment
from apps.payments.service import PaymentConfirmationService


def poll_url(pending_id):
    return f"/api/orders/payment-status/{pending_id}/"


@pytest.mark.django_db
class TestPaymentStatusPolling:

    def test_pending(self, auth_client, make_pending):
        pending = make_pending()
        resp = auth_client.get(poll_url(pending.id))
        assert resp.status_code == 200
        assert resp.data["success"] is True
        assert resp.data["payment_status"] == "pending"
        assert resp.data["pending_order_id"] == str(pending.id)
        assert len(resp.data["next_steps"]) == 3

    def test_completed(self, auth_client, make_pending, envelope):
        pending = make_pending()
        PaymentConfirmationService().handle_payload(envelope(pending.merchant_request_id))

        resp = auth_client.get(poll_url(pending.id))
        assert resp.status_code == 200
        assert resp.data["payment_status"] == "completed"
        assert resp.data["order_details"]["order_number"].startswith("ORD-")
        assert resp.data["action"]["destination"] == "/orders"

    def test_failed(self, auth_client, make_pending, envelope):
        pending = make_pending()
        PaymentConfirmationService().handle_payload(
            envelope(pending.merchant_request_id, result_code=1032, desc="Request cancelled by user")
        )

        resp = auth_client.get(poll_url(pending.id))
        assert resp.status_code == 200
        assert resp.data["success"] is False
        assert resp.data["payment_status"] == "failed"
        assert resp.data["message"] == "Request cancelled by user"
        assert resp.data["retry_allowed"] is True
        assert resp.data["action"]["original_amount"] == "1280.00"

    def test_expired(self, auth_client, make_pending):
        pending = make_pending(status=PendingPayment.Status.EXPIRED)
        resp = auth_client.get(poll_url(pending.id))
        assert resp.status_code == 200
        assert resp.data["payment_status"] == "expired"
        assert resp.data["retry_allowed"] is True

    @override_settings(PENDING_PAYMENT_TTL_SECONDS=300)
    def test_expired_hint_follows_ttl(self, auth_client, make_pending):
        pending = make_pending(status=PendingPayment.Status.EXPIRED)
        resp = auth_client.get(poll_url(pending.id))
        assert "Complete the payment within 5 minutes" in resp.data["next_steps"]

    def test_purged_record_is_not_found(self, auth_client, make_pending):
        pending = make_pending()
        pending_id = pending.id
        pending.delete()

        resp = auth_client.get(poll_url(pending_id))
        assert resp.status_code == 404
        assert resp.data["error"] == "not_found"
        assert resp.data["payment_status"] == "not_found"
        assert resp.data["action"] == {
            "type": "redirect", "destination": "/cart", "message": "Return to cart and try again",
        }

    def test_invalid_id_format(self, auth_client):
        resp = auth_client.get(poll_url("not-a-uuid"))
        assert resp.status_code == 400
        assert resp.data["error"] == "invalid_id_format"

    def test_other_customers_record_is_hidden(self, api_client, make_pending, other_customer):
        pending = make_pending()
        api_client.force_authenticate(user=other_customer)
        resp = api_client.get(poll_url(pending.id))
        assert resp.status_code == 404

    def test_requires_authentication(self, api_client, make_pending):
        pending = make_pending()
        resp = api_client.get(poll_url(pending.id))
        assert resp.status_code == 401

    def test_polling_never_mutates(self, auth_client, make_pending):
        pending = make_pending()
        for _ in range(3):
            auth_client.get(poll_url(pending.id))
        pending.refresh_from_db()
        assert pending.status == PendingPayment.Status.PENDING


@pytest.mark.django_db
class TestCheckoutToConfirmationFlow:
    """Submit, poll, receive callback, poll again."""

    def test_full_flow(self, auth_client, checkout_payload, use_gateway, tax_brackets, product, envelope):
        resp = auth_client.post("/api/orders/", checkout_payload(), format="json")
        assert resp.status_code == 200
        poll = resp.data["poll_url"]

        assert auth_client.get(poll).data["payment_status"] == "pending"

        pending = PendingPayment.objects.get(id=resp.data["pending_order_id"])
        auth_client.post(
            "/api/payments/mpesa/callback/", envelope(pending.merchant_request_id), format="json",
        )

        final = auth_client.get(poll).data
        assert final["payment_status"] == "completed"
        product.refresh_from_db()
        assert product.stock == 9
