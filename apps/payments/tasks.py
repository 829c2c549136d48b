"""
Payment Celery tasks: mock callback simulation and pending-payment sweeps.
"""

import logging
from celery import shared_task
from django.utils import timezone

logger = logging.getLogger("storefront.tasks")


@shared_task
def simulate_mpesa_callback(merchant_request_id: str, checkout_request_id: str,
                            amount: int, phone: str, success: bool = True):
    """
    Dev only: play Safaricom's part after a mock STK push.
    The envelope goes through the same processing as a real webhook.
    """
    from apps.payments.service import PaymentConfirmationService

    if success:
        callback = {
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": 0,
            "ResultDesc": "The service request is processed successfully.",
            "CallbackMetadata": {"Item": [
                {"Name": "Amount",             "Value": amount},
                {"Name": "MpesaReceiptNumber", "Value": f"MOCK{merchant_request_id[-6:].upper()}"},
                {"Name": "TransactionDate",    "Value": int(timezone.localtime().strftime("%Y%m%d%H%M%S"))},
                {"Name": "PhoneNumber",        "Value": int(phone)},
            ]},
        }
    else:
        callback = {
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": 1,
            "ResultDesc": "The balance is insufficient for the transaction.",
        }

    outcome = PaymentConfirmationService().handle_payload({"Body": {"stkCallback": callback}})
    logger.info("Simulated M-Pesa callback for %s: %s", merchant_request_id, outcome)
    return outcome


@shared_task
def expire_stale_pending_payments():
    """Beat: pending → expired once the confirmation window has passed."""
    from apps.payments.models import PendingPayment

    count = PendingPayment.objects.expire_stale()
    if count:
        logger.info("Expired %d stale pending payments", count)
    return count


@shared_task
def purge_settled_pending_payments():
    """Beat: delete failed/expired/processed records past the retention window."""
    from apps.payments.models import PendingPayment

    count = PendingPayment.objects.purge_settled()
    if count:
        logger.info("Purged %d settled pending payments", count)
    return count
