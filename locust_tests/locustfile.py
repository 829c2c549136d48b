"""
Storefront Load Test: Locust Script
===================================
Simulates a flash-sale checkout surge: shoppers submit M-Pesa checkouts and
poll for the outcome while store admins watch orders and metrics.

Usage (server running with MPESA_ENV=mock so callbacks are simulated):
    python manage.py seed_catalog --demo-customers 200
    locust -f locust_tests/locustfile.py --host=http://localhost:8000 \
           --users=200 --spawn-rate=20 --run-time=5m --headless

Shoppers log in as loadtest<N>@example.co.ke, the verified accounts created
by seed_catalog --demo-customers, and buy the demo product it prints.
"""

import os
import random
import time
from decimal import Decimal, ROUND_HALF_UP

from locust import HttpUser, task, between, events
from locust.exception import StopUser

PASSWORD          = os.environ.get("LOADTEST_PASSWORD", "Flash@Sale2024")
CUSTOMER_COUNT    = int(os.environ.get("LOADTEST_CUSTOMERS", "200"))
PRODUCT_ID        = int(os.environ.get("LOADTEST_PRODUCT_ID", "1"))
PRODUCT_PRICE     = Decimal(os.environ.get("LOADTEST_PRODUCT_PRICE", "1500.00"))
POLL_INTERVAL_S   = 2
POLL_TIMEOUT_S    = 30
TERMINAL_STATUSES = {"completed", "failed", "expired", "not_found"}


def quote(unit_price, quantity, shipping, brackets):
    """Client-side total the storefront would show, mirroring server pricing."""
    subtotal = unit_price * quantity
    cost = Decimal(shipping["cost"])
    if Decimal(shipping["min_free"]) and subtotal >= Decimal(shipping["min_free"]):
        cost = Decimal("0")
    rate = next(
        (Decimal(b["rate"]) for b in brackets
         if Decimal(b["min_amount"]) <= subtotal <= Decimal(b["max_amount"])),
        Decimal("0"),
    )
    total = subtotal + subtotal * rate + cost
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class Shopper(HttpUser):
    """
    A customer checking out during a sale.
    Checkout dominates; every submission is followed by polling.
    """
    wait_time = between(1, 3)
    weight    = 10
    token     = None

    def on_start(self):
        email = f"loadtest{random.randint(1, CUSTOMER_COUNT)}@example.co.ke"
        resp = self.client.post("/api/auth/login/", json={"email": email, "password": PASSWORD})
        if resp.status_code != 200:
            raise StopUser()
        self.token = resp.json().get("access")

        self.methods  = self.client.get("/api/catalog/shipping-methods/").json()
        self.brackets = self.client.get("/api/catalog/tax-rates/").json()
        if not self.methods:
            raise StopUser()

    def _headers(self):
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    # ── Tasks (weighted) ──────────────────────────────────────────────────────

    @task(5)
    def checkout_and_poll(self):
        method   = random.choice(self.methods)
        quantity = random.randint(1, 3)
        total    = quote(PRODUCT_PRICE, quantity, method, self.brackets)

        resp = self.client.post(
            "/api/orders/",
            json={
                "items":            [{"product": PRODUCT_ID, "quantity": quantity}],
                "shipping_address": {"full_name": "Load Test", "address": "Tom Mboya St", "city": "Nairobi"},
                "payment_method":   "mpesa",
                "shipping_method":  method["id"],
                "total_amount":     str(total),
                "phone_number":     f"07{random.randint(10000000, 99999999)}",
            },
            headers=self._headers(),
            name="/api/orders/ [checkout]",
        )
        if resp.status_code != 200:
            return

        poll_url = resp.json()["poll_url"]
        deadline = time.time() + POLL_TIMEOUT_S
        while time.time() < deadline:
            time.sleep(POLL_INTERVAL_S)
            status = self.client.get(
                poll_url, headers=self._headers(), name="/api/orders/payment-status/[id]/",
            ).json().get("payment_status")
            if status in TERMINAL_STATUSES:
                return

    @task(2)
    def my_orders(self):
        self.client.get("/api/orders/", headers=self._headers(), name="/api/orders/")

    @task(1)
    def notifications(self):
        self.client.get("/api/notifications/", headers=self._headers(), name="/api/notifications/")


class StoreAdmin(HttpUser):
    """Admins refreshing the order list and checkout metrics."""
    wait_time = between(2, 5)
    weight    = 1
    token     = None

    def on_start(self):
        resp = self.client.post(
            "/api/auth/login/",
            json={"email": "admin@storefront.test", "password": PASSWORD},
        )
        if resp.status_code == 200:
            self.token = resp.json().get("access")
        else:
            raise StopUser()

    def _h(self):
        return {"Authorization": f"Bearer {self.token}"}

    @task(3)
    def processing_orders(self):
        self.client.get("/api/orders/?status=processing", headers=self._h(), name="/api/orders/?status")

    @task(2)
    def metrics(self):
        self.client.get("/api/ops/metrics/", headers=self._h(), name="/api/ops/metrics/")

    @task(1)
    def health_check(self):
        self.client.get("/api/health/deep/", name="/api/health/deep/")


# ── Custom events for Locust reporting ────────────────────────────────────────
@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\n=== Storefront Load Test Complete ===")
    stats = environment.stats.total
    print(f"Total requests:      {stats.num_requests}")
    print(f"Failures:            {stats.num_failures}")
    print(f"Avg response time:   {stats.avg_response_time:.0f}ms")
    print(f"95th percentile:     {stats.get_response_time_percentile(0.95):.0f}ms")
    print(f"Requests/sec:        {stats.current_rps:.1f}")
    if stats.num_failures / max(stats.num_requests, 1) > 0.01:
        print("⚠ FAILURE RATE > 1%: checkout is shedding load")
    else:
        print("✓ System stable under load")
