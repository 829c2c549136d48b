"""
Pending-Payment Sweeps & Ops Endpoint Tests
===========================================
"""

from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.ops import views as ops_views
from apps.payments.models import PendingPayment
from apps.payments.tasks import expire_stale_pending_payments, purge_settled_pending_payments
from apps.payments.service import PaymentConfirmationService


def backdate(pending, **delta):
    PendingPayment.objects.filter(pk=pending.pk).update(created_at=timezone.now() - timedelta(**delta))


# ═══════════════════════════════════════════════════════════════════════════════
# EXPIRY SWEEP
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestExpirySweep:

    def test_expires_only_stale_pending(self, make_pending):
        stale = make_pending()
        fresh = make_pending()
        failed = make_pending(status=PendingPayment.Status.FAILED)
        backdate(stale, minutes=11)
        backdate(failed, minutes=11)

        assert expire_stale_pending_payments() == 1

        stale.refresh_from_db()
        fresh.refresh_from_db()
        failed.refresh_from_db()
        assert stale.status == PendingPayment.Status.EXPIRED
        assert fresh.status == PendingPayment.Status.PENDING
        assert failed.status == PendingPayment.Status.FAILED

    @override_settings(PENDING_PAYMENT_TTL_SECONDS=60)
    def test_ttl_is_configurable(self, make_pending):
        pending = make_pending()
        backdate(pending, minutes=2)
        assert PendingPayment.objects.expire_stale() == 1

    def test_late_success_after_expiry_creates_no_order(self, make_pending, envelope):
        pending = make_pending()
        backdate(pending, minutes=30)
        expire_stale_pending_payments()

        outcome = PaymentConfirmationService().handle_payload(envelope(pending.merchant_request_id))
        assert outcome == "ignored"

    def test_nothing_to_expire(self, make_pending):
        make_pending()
        assert expire_stale_pending_payments() == 0


# ═══════════════════════════════════════════════════════════════════════════════
# RETENTION PURGE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestRetentionPurge:

    def test_purges_old_terminal_records(self, make_pending):
        old_failed = make_pending(status=PendingPayment.Status.FAILED)
        old_processed = make_pending(status=PendingPayment.Status.PROCESSED)
        recent_failed = make_pending(status=PendingPayment.Status.FAILED)
        old_pending = make_pending()
        for p in (old_failed, old_processed, old_pending):
            backdate(p, hours=25)

        assert purge_settled_pending_payments() == 2

        remaining = set(PendingPayment.objects.values_list("id", flat=True))
        assert remaining == {recent_failed.id, old_pending.id}

    def test_purged_order_survives(self, make_pending, envelope):
        from apps.orders.models import Order

        pending = make_pending()
        PaymentConfirmationService().handle_payload(envelope(pending.merchant_request_id))
        backdate(pending, hours=48)
        purge_settled_pending_payments()

        assert not PendingPayment.objects.exists()
        assert Order.objects.filter(merchant_request_id=pending.merchant_request_id).exists()


# ═══════════════════════════════════════════════════════════════════════════════
# OPS ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestDeepHealth:

    def test_healthy(self, api_client):
        resp = api_client.get("/api/health/deep/")
        assert resp.status_code == 200
        assert resp.data["status"] == "ok"
        assert resp.data["checks"]["database"] == "ok"
        assert resp.data["checks"]["cache"] == "ok"
        assert resp.data["checks"]["stale_pending_payments"] == 0

    def test_lagging_expiry_sweep_is_degraded(self, api_client, make_pending, monkeypatch):
        monkeypatch.setattr(ops_views, "STALE_PENDING_THRESHOLD", 1)
        for _ in range(2):
            backdate(make_pending(), minutes=20)

        resp = api_client.get("/api/health/deep/")
        assert resp.status_code == 503
        assert resp.data["status"] == "degraded"
        assert resp.data["checks"]["expiry_sweep"] == "lagging"
        assert resp.data["checks"]["stale_pending_payments"] == 2


@pytest.mark.django_db
class TestMetrics:

    def test_admin_gets_prometheus_text(self, admin_client, make_pending, envelope):
        paid = make_pending()
        PaymentConfirmationService().handle_payload(envelope(paid.merchant_request_id))
        make_pending()

        resp = admin_client.get("/api/ops/metrics/")
        assert resp.status_code == 200
        assert resp["Content-Type"].startswith("text/plain")
        body = resp.content.decode()
        assert 'storefront_orders_total{status="processing"} 1' in body
        assert 'storefront_pending_payments_total{status="pending"} 1' in body
        assert 'storefront_pending_payments_total{status="processed"} 1' in body
        assert "storefront_revenue_kes 1280" in body

    def test_customer_forbidden(self, auth_client):
        resp = auth_client.get("/api/ops/metrics/")
        assert resp.status_code == 403
