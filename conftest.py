"""
pytest configuration for the Storefront API.
Sets Django settings and provides shared fixtures.
"""

import datetime

import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings before tests run."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME":   ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.admin",
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.staticfiles",
                "rest_framework",
                "rest_framework_simplejwt",
                "drf_spectacular",
                "django_filters",
                "corsheaders",
                "apps.authentication",
                "apps.catalog",
                "apps.orders",
                "apps.payments",
                "apps.notifications",
                "apps.ops",
            ],
            AUTH_USER_MODEL="authentication.Customer",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "DEFAULT_FILTER_BACKENDS": [
                    "django_filters.rest_framework.DjangoFilterBackend",
                ],
                "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
                "PAGE_SIZE": 10,
                "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
            },
            SPECTACULAR_SETTINGS={
                "TITLE": "Storefront API",
                "VERSION": "1.0.0",
                "SERVE_INCLUDE_SCHEMA": False,
            },
            SECRET_KEY="test-secret-key-not-for-production",
            DEBUG=True,
            USE_TZ=True,
            TIME_ZONE="Africa/Nairobi",
            ROOT_URLCONF="storefront.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            TEMPLATES=[{
                "BACKEND": "django.template.backends.django.DjangoTemplates",
                "DIRS": [],
                "APP_DIRS": True,
                "OPTIONS": {
                    "context_processors": [
                        "django.template.context_processors.debug",
                        "django.template.context_processors.request",
                        "django.contrib.auth.context_processors.auth",
                        "django.contrib.messages.context_processors.messages",
                    ],
                },
            }],
            MIDDLEWARE=[
                "django.middleware.security.SecurityMiddleware",
                "corsheaders.middleware.CorsMiddleware",
                "django.contrib.sessions.middleware.SessionMiddleware",
                "django.middleware.common.CommonMiddleware",
                "django.middleware.csrf.CsrfViewMiddleware",
                "django.contrib.auth.middleware.AuthenticationMiddleware",
                "django.contrib.messages.middleware.MessageMiddleware",
            ],
            STATIC_URL="/static/",
            STATIC_ROOT="/tmp/staticfiles_test",
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                }
            },
            EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
            DEFAULT_FROM_EMAIL="Storefront <no-reply@storefront.test>",
            CELERY_TASK_ALWAYS_EAGER=True,   # Execute tasks synchronously in tests
            CELERY_TASK_EAGER_PROPAGATES=True,
            CELERY_BROKER_URL="memory://",
            CORS_ALLOW_ALL_ORIGINS=True,
            SIMPLE_JWT={
                "ACCESS_TOKEN_LIFETIME": datetime.timedelta(hours=1),
                "REFRESH_TOKEN_LIFETIME": datetime.timedelta(days=7),
                "ALGORITHM": "HS256",
                "AUTH_HEADER_TYPES": ("Bearer",),
            },
            # Checkout
            PENDING_PAYMENT_TTL_SECONDS=600,
            PENDING_PAYMENT_RETENTION_HOURS=24,
            ORDER_CANCEL_WINDOW_MINUTES=15,
            CHECKOUT_POLL_INTERVAL_MS=5000,
            PRICE_TOLERANCE="0.01",
            FREE_SHIPPING_METHOD_NAME="Free Shipping",
            CLIENT_URL="http://localhost:5173",
            # M-Pesa (gateway calls are mocked in tests)
            MPESA_ENV="sandbox",
            MPESA_BASE_URL="",
            MPESA_CONSUMER_KEY="test-key",
            MPESA_CONSUMER_SECRET="test-secret",
            MPESA_SHORTCODE="174379",
            MPESA_PASSKEY="test-passkey",
            MPESA_CALLBACK_URL="https://shop.test/api/payments/mpesa/callback/",
            MPESA_CALLBACK_TOKEN="",
            MPESA_TIMEOUT_SECONDS=15,
            MPESA_MAX_AMOUNT=150000,
        )


@pytest.fixture(autouse=True, scope="session")
def celery_eager():
    """Bind shared tasks to the project app and run them inline."""
    from storefront.celery import app

    app.conf.task_always_eager     = True
    app.conf.task_eager_propagates = True
    app.conf.broker_url            = "memory://"
    return app


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# SHARED FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_customer(db):
    import uuid
    from django.contrib.auth import get_user_model

    def _make(email=None, verified=True, role="CUSTOMER", **kwargs):
        return get_user_model().objects.create_user(
            email=email or f"{uuid.uuid4().hex[:10]}@example.co.ke",
            password="Test@1234",
            full_name=kwargs.pop("full_name", "Wanjiku Kamau"),
            role=role,
            is_email_verified=verified,
            **kwargs,
        )
    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer(email="wanjiku@example.co.ke")


@pytest.fixture
def other_customer(make_customer):
    return make_customer(email="otieno@example.co.ke", full_name="Otieno Ouma")


@pytest.fixture
def store_admin(make_customer):
    return make_customer(email="admin@example.co.ke", role="ADMIN", full_name="Admin Amina", is_staff=True)


@pytest.fixture
def auth_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


@pytest.fixture
def admin_client(api_client, store_admin):
    api_client.force_authenticate(user=store_admin)
    return api_client


# ── Catalogue ─────────────────────────────────────────────────────────────────
@pytest.fixture
def product(db):
    from decimal import Decimal
    from apps.catalog.models import Product
    return Product.objects.create(title="Kikoy Beach Towel", sku="KIK-001", price=Decimal("1000.00"), stock=10)


@pytest.fixture
def flat_rate(db):
    from decimal import Decimal
    from apps.catalog.models import ShippingMethod
    return ShippingMethod.objects.create(name="Flat Rate", cost=Decimal("250.00"), estimated_days=3)


@pytest.fixture
def free_shipping(db):
    from decimal import Decimal
    from apps.catalog.models import ShippingMethod
    return ShippingMethod.objects.create(
        name="Free Shipping", cost=Decimal("250.00"), estimated_days=7, min_free=Decimal("800.00"),
    )


@pytest.fixture
def tax_brackets(db):
    from decimal import Decimal
    from apps.catalog.models import TaxRate
    return [
        TaxRate.objects.create(min_amount=Decimal("0"),       max_amount=Decimal("2000"),  rate=Decimal("0.03")),
        TaxRate.objects.create(min_amount=Decimal("2000.01"), max_amount=Decimal("10000"), rate=Decimal("0.05")),
    ]


@pytest.fixture
def save10(db):
    from decimal import Decimal
    from apps.catalog.models import Coupon
    return Coupon.objects.create(code="SAVE10", type="percentage", amount=Decimal("10"), min_amount=Decimal("500"))


# ── M-Pesa ────────────────────────────────────────────────────────────────────
class FakeGateway:
    """Records STK pushes and returns sequential correlation ids."""

    def __init__(self, fail=False):
        self.fail  = fail
        self.calls = []

    def stk_push(self, phone, amount, reference, description):
        from apps.payments.gateway import GatewayError, StkPushResult
        from django.db import connection
        self.calls.append({
            "phone": phone, "amount": amount, "reference": reference,
            "in_atomic_block": connection.in_atomic_block,
        })
        if self.fail:
            raise GatewayError("Bad Request - Invalid PhoneNumber")
        n = len(self.calls)
        return StkPushResult(f"29115-{n}", f"ws_CO_{n}", "0", "Success. Request accepted for processing")

    def on_pending_created(self, pending, amount):
        from django.db import connection
        self.calls[-1]["pending"] = pending.pk
        self.calls[-1]["pending_in_atomic_block"] = connection.in_atomic_block


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def use_gateway(gateway):
    """Route checkout STK pushes through the fake gateway."""
    from unittest.mock import patch
    with patch("apps.orders.service.get_payment_adapter", return_value=gateway):
        yield gateway


@pytest.fixture
def checkout_payload(product, flat_rate):
    def _payload(**overrides):
        data = {
            "items": [{"product": product.id, "quantity": 1}],
            "shipping_address": {
                "full_name": "Wanjiku Kamau",
                "address":   "Moi Avenue 12",
                "city":      "Nairobi",
            },
            "payment_method":  "mpesa",
            "shipping_method": flat_rate.id,
            "total_amount":    "1280.00",
            "phone_number":    "0712345678",
        }
        data.update(overrides)
        return data
    return _payload


@pytest.fixture
def make_pending(db, customer, product, flat_rate):
    """A PendingPayment as checkout would have written it (1 x product @ 1000)."""
    import uuid
    from decimal import Decimal
    from apps.payments.models import PendingPayment

    def _make(user=None, quantity=1, coupon=None, **kwargs):
        mrid = kwargs.pop("merchant_request_id", f"29115-{uuid.uuid4().hex[:8]}")
        return PendingPayment.objects.create(
            merchant_request_id  = mrid,
            checkout_request_id  = f"ws_CO_{mrid}",
            user                 = user or customer,
            items                = [{
                "product": product.id, "title": product.title, "image": "", "sku": product.sku,
                "price": "1000.00", "quantity": quantity, "variant": None,
            }],
            shipping_address     = {"full_name": "Wanjiku Kamau", "address": "Moi Avenue 12", "city": "Nairobi"},
            billing_address      = {"full_name": "Wanjiku Kamau", "address": "Moi Avenue 12", "city": "Nairobi"},
            subtotal             = Decimal("1000.00") * quantity,
            tax                  = Decimal("30.00") * quantity,
            shipping_cost        = Decimal("250.00"),
            total                = Decimal("1030.00") * quantity + Decimal("250.00"),
            coupon               = coupon,
            shipping_method      = flat_rate,
            shipping_method_name = flat_rate.name,
            stock_reservations   = [{"product": product.id, "quantity": quantity}],
            phone_number         = "254712345678",
            **kwargs,
        )
    return _make


def stk_envelope(merchant_request_id, result_code=0, receipt="NLJ7RT61SV", desc=None):
    callback = {
        "MerchantRequestID": merchant_request_id,
        "CheckoutRequestID": f"ws_CO_{merchant_request_id}",
        "ResultCode": result_code,
        "ResultDesc": desc or ("The service request is processed successfully." if result_code == 0
                               else "The balance is insufficient for the transaction."),
    }
    if result_code == 0:
        callback["CallbackMetadata"] = {"Item": [
            {"Name": "Amount",             "Value": 1280},
            {"Name": "MpesaReceiptNumber", "Value": receipt},
            {"Name": "PhoneNumber",        "Value": 254712345678},
        ]}
    return {"Body": {"stkCallback": callback}}


@pytest.fixture
def envelope():
    return stk_envelope
