"""
Operations views:
  - Deep health check (DB, cache, stuck pending payments)
  - Prometheus-formatted checkout metrics
"""

import logging

from django.db import connection, DatabaseError
from django.db.models import Count, Sum
from django.core.cache import cache
from django.http import HttpResponse
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_spectacular.utils import extend_schema

from apps.orders.models import Order
from apps.payments.models import PendingPayment

logger = logging.getLogger("storefront.ops")

# More stale pending payments than this means the expiry beat is not running
STALE_PENDING_THRESHOLD = 50


# ── GET /api/health/deep/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Deep health check: DB, cache, pending-payment backlog")
class DeepHealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {}

        # Database
        try:
            with connection.cursor() as cur:
                cur.execute("SELECT 1")
            checks["database"] = "ok"
        except DatabaseError as exc:
            logger.error("Health check: database error %s", exc)
            checks["database"] = "error"

        # Cache
        try:
            cache.set("healthcheck", "1", 5)
            checks["cache"] = "ok" if cache.get("healthcheck") == "1" else "miss"
        except Exception as exc:
            logger.error("Health check: cache error %s", exc)
            checks["cache"] = "error"

        # Pending payments older than the TTL that the sweep has not expired yet
        if checks["database"] == "ok":
            stale = PendingPayment.objects.stale().count()
            checks["stale_pending_payments"] = stale
            checks["expiry_sweep"] = "ok" if stale <= STALE_PENDING_THRESHOLD else "lagging"

        overall = "ok" if all(
            v == "ok" for k, v in checks.items() if k != "stale_pending_payments"
        ) else "degraded"
        return Response({"status": overall, "checks": checks}, status=200 if overall == "ok" else 503)


# ── GET /api/ops/metrics/ ────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Prometheus-formatted checkout metrics (Admin only)")
class MetricsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.is_store_admin:
            return Response({"error": "Admin only."}, status=403)

        order_counts = dict(
            Order.objects.order_by().values_list("status").annotate(c=Count("id"))
        )
        pending_counts = dict(
            PendingPayment.objects.order_by().values_list("status").annotate(c=Count("id"))
        )
        revenue = Order.objects.filter(
            payment_status=Order.PaymentStatus.PAID
        ).aggregate(t=Sum("total"))["t"] or 0

        lines = [
            "# HELP storefront_orders_total Orders by status",
            "# TYPE storefront_orders_total gauge",
        ]
        for status, count in order_counts.items():
            lines.append(f'storefront_orders_total{{status="{status}"}} {count}')
        lines += [
            "",
            "# HELP storefront_pending_payments_total Pending payment records by status",
            "# TYPE storefront_pending_payments_total gauge",
        ]
        for status, count in pending_counts.items():
            lines.append(f'storefront_pending_payments_total{{status="{status}"}} {count}')
        lines += [
            "",
            "# HELP storefront_revenue_kes Confirmed revenue in KES",
            "# TYPE storefront_revenue_kes gauge",
            f"storefront_revenue_kes {revenue}",
        ]
        return HttpResponse("\n".join(lines), content_type="text/plain; version=0.0.4")
