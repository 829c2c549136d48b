"""
PaymentConfirmationService: applies an M-Pesa STK callback to its PendingPayment.

  ResultCode != 0  →  pending → failed, failure notice queued
  ResultCode == 0  →  one transaction: lock pending, create Order, deduct stock,
                      count coupon use, pending → processed; confirmation queued

Only records still 'pending' are touched, so redelivered callbacks are no-ops.
"""

import logging

from django.db import DatabaseError, transaction

from apps.notifications.tasks import publish, send_order_confirmation, send_payment_failed
from apps.orders.service import OrderService
from apps.payments.models import PendingPayment
from apps.payments.serializers import parse_stk_callback

logger = logging.getLogger("storefront.payments")

MATERIALIZATION_FAILED = "Order processing failed"


class PaymentConfirmationService:

    def __init__(self, order_service=None):
        self.orders = order_service or OrderService()

    def handle_payload(self, payload) -> str:
        """Entry point for raw webhook bodies. Returns an outcome label for logging."""
        callback = parse_stk_callback(payload)
        if callback is None:
            logger.warning("Malformed M-Pesa callback ignored: %s", payload)
            return "invalid"
        data = callback.validated_data
        if data["ResultCode"] != 0:
            return self.record_failure(data["MerchantRequestID"], data.get("ResultDesc", ""))
        return self.confirm(
            data["MerchantRequestID"],
            data.get("CheckoutRequestID", ""),
            callback.get_metadata(),
        )

    # ── Failure ───────────────────────────────────────────────────────────────
    def record_failure(self, merchant_request_id: str, reason: str) -> str:
        if not PendingPayment.objects.mark_failed(merchant_request_id, reason):
            logger.info("Failure callback for non-pending %s ignored", merchant_request_id)
            return "ignored"

        pending_id = (
            PendingPayment.objects
            .filter(merchant_request_id=merchant_request_id)
            .values_list("id", flat=True)
            .first()
        )
        logger.info("Payment %s failed: %s", merchant_request_id, reason)
        if pending_id:
            publish(send_payment_failed, str(pending_id))
        return "failed"

    # ── Success ───────────────────────────────────────────────────────────────
    def confirm(self, merchant_request_id: str, checkout_request_id: str, metadata: dict) -> str:
        receipt = str(metadata.get("MpesaReceiptNumber") or "")
        try:
            with transaction.atomic():
                pending = PendingPayment.objects.claim_for_processing(merchant_request_id)
                if pending is None:
                    logger.info("Success callback for non-pending %s ignored", merchant_request_id)
                    return "ignored"
                order = self.orders.create_from_pending(pending, receipt, checkout_request_id)
                pending.mark_processed()
        except Exception:
            # Money was captured but no order exists; needs manual reconciliation
            logger.exception(
                "Order creation failed for %s (M-Pesa receipt %s)", merchant_request_id, receipt,
            )
            try:
                PendingPayment.objects.mark_failed(merchant_request_id, MATERIALIZATION_FAILED)
            except DatabaseError:
                logger.exception("Could not mark %s as failed after order creation error", merchant_request_id)
            return "error"

        logger.info(
            "Payment %s confirmed: order %s, receipt %s",
            merchant_request_id, order.order_number, receipt,
        )
        publish(send_order_confirmation, str(order.id))
        return "processed"
