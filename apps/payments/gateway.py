"""
M-Pesa STK push gateway adapters.

DarajaAdapter talks to Safaricom's Daraja API (sandbox or production).
MpesaMockAdapter fakes the push and schedules a simulated callback so the
whole checkout can be exercised without a phone.
"""

import base64
import logging
import random
import uuid
from collections import namedtuple

import requests
from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger("storefront.payments")

StkPushResult = namedtuple(
    "StkPushResult",
    ["merchant_request_id", "checkout_request_id", "response_code", "customer_message"],
)


class GatewayError(Exception):
    """The gateway rejected or never answered a request. Message is safe to log, not to show."""


# ── Gateway Adapter Interface ──────────────────────────────────────────────────
class PaymentGatewayAdapter:
    """Base interface every STK push gateway implements."""

    def stk_push(self, phone: str, amount: int, reference: str, description: str) -> StkPushResult:
        raise NotImplementedError

    def query_status(self, checkout_request_id: str) -> dict:
        raise NotImplementedError

    def on_pending_created(self, pending, amount: int) -> None:
        """Called inside the transaction that stores the pending record."""

    @staticmethod
    def validate_amount(amount) -> int:
        amount = int(amount)
        if amount < 1 or amount > settings.MPESA_MAX_AMOUNT:
            raise GatewayError(f"Amount {amount} outside 1..{settings.MPESA_MAX_AMOUNT}")
        return amount


# ── Safaricom Daraja ───────────────────────────────────────────────────────────
class DarajaAdapter(PaymentGatewayAdapter):
    BASE_URLS = {
        "sandbox":    "https://sandbox.safaricom.co.ke",
        "production": "https://api.safaricom.co.ke",
    }
    TOKEN_CACHE_KEY = "mpesa:access_token"
    TOKEN_TIMEOUT   = 10

    def __init__(self, env=None):
        self.env      = env or settings.MPESA_ENV
        self.base_url = settings.MPESA_BASE_URL or self.BASE_URLS.get(self.env, self.BASE_URLS["sandbox"])

    # ── auth ──────────────────────────────────────────────────────────────────
    def get_access_token(self) -> str:
        token = cache.get(self.TOKEN_CACHE_KEY)
        if token:
            return token
        try:
            resp = requests.get(
                f"{self.base_url}/oauth/v1/generate",
                params={"grant_type": "client_credentials"},
                auth=(settings.MPESA_CONSUMER_KEY, settings.MPESA_CONSUMER_SECRET),
                timeout=self.TOKEN_TIMEOUT,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("M-Pesa token request failed: %s", exc)
            raise GatewayError("Could not authenticate with M-Pesa") from exc

        token = data.get("access_token")
        if not token:
            logger.error("M-Pesa token response without access_token: %s", data)
            raise GatewayError("Could not authenticate with M-Pesa")

        # refresh a minute early
        expires_in = int(data.get("expires_in", 3599))
        cache.set(self.TOKEN_CACHE_KEY, token, max(expires_in - 60, 60))
        return token

    @staticmethod
    def timestamp(now=None) -> str:
        now = timezone.localtime(now or timezone.now())
        return now.strftime("%Y%m%d%H%M%S")

    @staticmethod
    def password(timestamp: str) -> str:
        raw = f"{settings.MPESA_SHORTCODE}{settings.MPESA_PASSKEY}{timestamp}"
        return base64.b64encode(raw.encode()).decode()

    @staticmethod
    def callback_url() -> str:
        url = settings.MPESA_CALLBACK_URL
        if settings.MPESA_CALLBACK_TOKEN:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}token={settings.MPESA_CALLBACK_TOKEN}"
        return url

    def _post(self, path: str, payload: dict) -> dict:
        headers = {"Authorization": f"Bearer {self.get_access_token()}"}
        try:
            resp = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=settings.MPESA_TIMEOUT_SECONDS,
            )
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("M-Pesa %s failed: %s", path, exc)
            raise GatewayError("M-Pesa request failed") from exc

        if resp.status_code >= 400:
            logger.error("M-Pesa %s returned %s: %s", path, resp.status_code, data)
            raise GatewayError(f"M-Pesa returned HTTP {resp.status_code}")
        return data

    # ── STK push ──────────────────────────────────────────────────────────────
    def stk_push(self, phone, amount, reference, description) -> StkPushResult:
        amount    = self.validate_amount(amount)
        timestamp = self.timestamp()
        payload = {
            "BusinessShortCode": settings.MPESA_SHORTCODE,
            "Password":          self.password(timestamp),
            "Timestamp":         timestamp,
            "TransactionType":   "CustomerPayBillOnline",
            "Amount":            amount,
            "PartyA":            phone,
            "PartyB":            settings.MPESA_SHORTCODE,
            "PhoneNumber":       phone,
            "CallBackURL":       self.callback_url(),
            "AccountReference":  reference,
            "TransactionDesc":   description,
        }
        data = self._post("/mpesa/stkpush/v1/processrequest", payload)

        if not data.get("MerchantRequestID"):
            logger.error("STK push for %s rejected: %s", reference, data)
            raise GatewayError("STK push was not accepted")

        logger.info(
            "STK push sent to %s for Ksh %s. Merchant ref: %s",
            phone, amount, data["MerchantRequestID"],
        )
        return StkPushResult(
            merchant_request_id = data["MerchantRequestID"],
            checkout_request_id = data.get("CheckoutRequestID", ""),
            response_code       = str(data.get("ResponseCode", "")),
            customer_message    = data.get("CustomerMessage", ""),
        )

    def query_status(self, checkout_request_id) -> dict:
        timestamp = self.timestamp()
        return self._post("/mpesa/stkpushquery/v1/query", {
            "BusinessShortCode": settings.MPESA_SHORTCODE,
            "Password":          self.password(timestamp),
            "Timestamp":         timestamp,
            "CheckoutRequestID": checkout_request_id,
        })


# ── Mock ───────────────────────────────────────────────────────────────────────
class MpesaMockAdapter(PaymentGatewayAdapter):
    """
    Simulates the STK push round trip for local development.

      1. stk_push() returns generated correlation ids.
      2. Once the pending record has committed, a Celery task fires a
         simulated callback after a few seconds.
      3. The callback goes through the same processing as a real webhook.
    """

    SUCCESS_RATE = 0.9

    def stk_push(self, phone, amount, reference, description) -> StkPushResult:
        amount = self.validate_amount(amount)
        merchant_request_id = f"mock-{uuid.uuid4().hex[:16]}"
        checkout_request_id = f"ws_CO_{uuid.uuid4().hex[:16]}"

        logger.info(
            "MPESA MOCK: push prompt sent to %s for Ksh %s. Ref: %s",
            phone, amount, merchant_request_id,
        )
        return StkPushResult(
            merchant_request_id = merchant_request_id,
            checkout_request_id = checkout_request_id,
            response_code       = "0",
            customer_message    = "Success. Request accepted for processing",
        )

    def on_pending_created(self, pending, amount: int) -> None:
        from apps.payments.tasks import simulate_mpesa_callback
        success = random.random() < self.SUCCESS_RATE
        args = [pending.merchant_request_id, pending.checkout_request_id, amount, pending.phone_number, success]
        transaction.on_commit(lambda: simulate_mpesa_callback.apply_async(args=args, countdown=5))

    def query_status(self, checkout_request_id) -> dict:
        return {"CheckoutRequestID": checkout_request_id, "ResultCode": "0", "ResultDesc": "Mock"}


# ── Factory ────────────────────────────────────────────────────────────────────
def get_payment_adapter(env: str = None) -> PaymentGatewayAdapter:
    env = env or settings.MPESA_ENV
    if env == "mock":
        return MpesaMockAdapter()
    if env in DarajaAdapter.BASE_URLS:
        return DarajaAdapter(env)
    raise ValueError(f"Unknown M-Pesa environment: {env}")
