"""
M-Pesa Gateway Adapter Tests
============================
Daraja HTTP calls are patched at the `requests` boundary.
"""

import base64
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
import requests
from django.test import override_settings

from apps.payments.gateway import (
    DarajaAdapter, GatewayError, MpesaMockAdapter, PaymentGatewayAdapter, get_payment_adapter,
)


def http_response(status_code=200, json_data=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return resp


TOKEN_OK = http_response(json_data={"access_token": "tok-123", "expires_in": "3599"})
STK_OK = http_response(json_data={
    "MerchantRequestID":   "29115-34620561-1",
    "CheckoutRequestID":   "ws_CO_191220191020363925",
    "ResponseCode":        "0",
    "ResponseDescription": "Success. Request accepted for processing",
    "CustomerMessage":     "Success. Request accepted for processing",
})


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Daraja request building
# ═══════════════════════════════════════════════════════════════════════════════

class TestDarajaHelpers:

    def test_timestamp_is_nairobi_local_time(self):
        utc_morning = datetime(2024, 3, 1, 9, 5, 7, tzinfo=ZoneInfo("UTC"))
        assert DarajaAdapter.timestamp(utc_morning) == "20240301120507"

    def test_password_is_base64_of_shortcode_passkey_timestamp(self):
        encoded = DarajaAdapter.password("20240301120507")
        assert base64.b64decode(encoded).decode() == "174379test-passkey20240301120507"

    def test_callback_url_without_token(self):
        assert DarajaAdapter.callback_url() == "https://shop.test/api/payments/mpesa/callback/"

    @override_settings(MPESA_CALLBACK_TOKEN="s3cret")
    def test_callback_url_carries_token(self):
        assert DarajaAdapter.callback_url().endswith("/mpesa/callback/?token=s3cret")

    @pytest.mark.parametrize("amount", [0, -5, 150001])
    def test_amount_bounds(self, amount):
        with pytest.raises(GatewayError):
            PaymentGatewayAdapter.validate_amount(amount)

    @pytest.mark.parametrize("amount", [1, 1280, 150000])
    def test_amount_in_range(self, amount):
        assert PaymentGatewayAdapter.validate_amount(amount) == amount

    def test_base_url_per_environment(self):
        assert DarajaAdapter("sandbox").base_url == "https://sandbox.safaricom.co.ke"
        assert DarajaAdapter("production").base_url == "https://api.safaricom.co.ke"

    @override_settings(MPESA_BASE_URL="http://localhost:8001")
    def test_base_url_override_for_local_mock(self):
        assert DarajaAdapter("sandbox").base_url == "http://localhost:8001"


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION TESTS — Daraja HTTP exchange (mocked)
# ═══════════════════════════════════════════════════════════════════════════════

class TestDarajaExchange:

    @patch("apps.payments.gateway.requests.post", return_value=STK_OK)
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_stk_push_success(self, mock_get, mock_post):
        result = DarajaAdapter().stk_push("254712345678", 1280, "TEMP_1", "Order payment")

        assert result.merchant_request_id == "29115-34620561-1"
        assert result.checkout_request_id == "ws_CO_191220191020363925"
        assert result.response_code == "0"

        url = mock_post.call_args.args[0]
        body = mock_post.call_args.kwargs["json"]
        assert url == "https://sandbox.safaricom.co.ke/mpesa/stkpush/v1/processrequest"
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer tok-123"
        assert mock_post.call_args.kwargs["timeout"] == 15
        assert body["Amount"] == 1280
        assert body["PartyA"] == body["PhoneNumber"] == "254712345678"
        assert body["BusinessShortCode"] == body["PartyB"] == "174379"
        assert body["TransactionType"] == "CustomerPayBillOnline"
        assert body["AccountReference"] == "TEMP_1"

    @patch("apps.payments.gateway.requests.post", return_value=STK_OK)
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_token_is_cached(self, mock_get, mock_post):
        adapter = DarajaAdapter()
        adapter.stk_push("254712345678", 100, "TEMP_1", "x")
        adapter.stk_push("254712345678", 100, "TEMP_2", "x")
        assert mock_get.call_count == 1
        assert mock_post.call_count == 2

    @patch("apps.payments.gateway.requests.get", return_value=http_response(401, {"error": "invalid"}))
    def test_token_failure(self, mock_get):
        with pytest.raises(GatewayError):
            DarajaAdapter().get_access_token()

    @patch("apps.payments.gateway.requests.get", side_effect=requests.ConnectionError("dns"))
    def test_token_network_error(self, mock_get):
        with pytest.raises(GatewayError):
            DarajaAdapter().get_access_token()

    @patch("apps.payments.gateway.requests.post", return_value=http_response(200, {
        "ResponseCode": "1", "errorMessage": "Invalid PhoneNumber",
    }))
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_missing_merchant_request_id(self, mock_get, mock_post):
        with pytest.raises(GatewayError):
            DarajaAdapter().stk_push("254712345678", 100, "TEMP_1", "x")

    @patch("apps.payments.gateway.requests.post", return_value=http_response(500, {"errorMessage": "boom"}))
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_http_error(self, mock_get, mock_post):
        with pytest.raises(GatewayError, match="HTTP 500"):
            DarajaAdapter().stk_push("254712345678", 100, "TEMP_1", "x")

    @patch("apps.payments.gateway.requests.post", side_effect=requests.Timeout("slow"))
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_timeout(self, mock_get, mock_post):
        with pytest.raises(GatewayError):
            DarajaAdapter().stk_push("254712345678", 100, "TEMP_1", "x")

    @patch("apps.payments.gateway.requests.post")
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_amount_checked_before_any_request(self, mock_get, mock_post):
        with pytest.raises(GatewayError):
            DarajaAdapter().stk_push("254712345678", 0, "TEMP_1", "x")
        mock_get.assert_not_called()
        mock_post.assert_not_called()

    @patch("apps.payments.gateway.requests.post", return_value=http_response(200, {
        "ResultCode": "0", "ResultDesc": "The service request is processed successfully.",
    }))
    @patch("apps.payments.gateway.requests.get", return_value=TOKEN_OK)
    def test_query_status(self, mock_get, mock_post):
        data = DarajaAdapter().query_status("ws_CO_1")
        assert data["ResultCode"] == "0"
        assert mock_post.call_args.kwargs["json"]["CheckoutRequestID"] == "ws_CO_1"


# ═══════════════════════════════════════════════════════════════════════════════
# MOCK ADAPTER & FACTORY
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestMockAdapter:

    def test_push_schedules_nothing_by_itself(self, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            result = MpesaMockAdapter().stk_push("254712345678", 1280, "TEMP_1", "x")
        assert callbacks == []
        assert result.merchant_request_id.startswith("mock-")
        assert result.response_code == "0"

    def test_schedules_callback_after_commit(self, django_capture_on_commit_callbacks):
        pending = SimpleNamespace(
            merchant_request_id="mock-abc", checkout_request_id="ws_CO_abc", phone_number="254712345678",
        )
        with patch("apps.payments.tasks.simulate_mpesa_callback.apply_async") as mock_async:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                MpesaMockAdapter().on_pending_created(pending, 1280)
            assert len(callbacks) == 1

        args = mock_async.call_args.kwargs["args"]
        assert args[:4] == ["mock-abc", "ws_CO_abc", 1280, "254712345678"]
        assert mock_async.call_args.kwargs["countdown"] == 5

    def test_rejects_bad_amount(self):
        with pytest.raises(GatewayError):
            MpesaMockAdapter().stk_push("254712345678", 0, "TEMP_1", "x")


class TestAdapterFactory:

    def test_mock(self):
        assert isinstance(get_payment_adapter("mock"), MpesaMockAdapter)

    @pytest.mark.parametrize("env", ["sandbox", "production"])
    def test_daraja(self, env):
        adapter = get_payment_adapter(env)
        assert isinstance(adapter, DarajaAdapter)
        assert adapter.env == env

    def test_defaults_to_settings(self):
        assert isinstance(get_payment_adapter(), DarajaAdapter)

    def test_unknown_environment(self):
        with pytest.raises(ValueError):
            get_payment_adapter("staging")
