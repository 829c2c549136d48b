"""M-Pesa STK callback receiver."""

import logging

from django.conf import settings
from django.utils.crypto import constant_time_compare
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework.exceptions import ParseError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample

from apps.payments.service import PaymentConfirmationService

logger = logging.getLogger("storefront.payments")
confirmation_service = PaymentConfirmationService()

ACK = {"ResultCode": 0, "ResultDesc": "Accepted"}


# ── POST /api/payments/mpesa/callback/ ────────────────────────────────────────
@extend_schema(
    tags=["Payments"],
    summary="Receive M-Pesa STK push result (webhook)",
    examples=[
        OpenApiExample(
            "Success",
            value={"Body": {"stkCallback": {
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_CO_191220191020363925",
                "ResultCode": 0,
                "ResultDesc": "The service request is processed successfully.",
                "CallbackMetadata": {"Item": [
                    {"Name": "Amount", "Value": 1280},
                    {"Name": "MpesaReceiptNumber", "Value": "NLJ7RT61SV"},
                    {"Name": "PhoneNumber", "Value": 254712345678},
                ]},
            }}},
        )
    ],
)
@method_decorator(csrf_exempt, name="dispatch")
class MpesaCallbackView(APIView):
    """
    Called by Safaricom after the customer answers (or ignores) the PIN prompt.
    Always answers 200: Safaricom retries anything else, and every outcome
    is already durable or logged by the time we reply.
    """
    permission_classes     = [AllowAny]
    authentication_classes = []   # webhooks are not JWT-authenticated

    def post(self, request):
        expected = settings.MPESA_CALLBACK_TOKEN
        if expected and not constant_time_compare(request.query_params.get("token", ""), expected):
            logger.warning("M-Pesa callback with bad token from %s ignored", request.META.get("REMOTE_ADDR"))
            return Response(ACK)

        try:
            payload = request.data
        except ParseError:
            logger.warning("M-Pesa callback with unparseable body ignored")
            return Response(ACK)

        try:
            outcome = confirmation_service.handle_payload(payload)
        except Exception:
            logger.exception("Unhandled error processing M-Pesa callback")
            return Response(ACK)

        logger.info("M-Pesa callback processed: %s", outcome)
        return Response(ACK)
