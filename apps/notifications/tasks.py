"""
Notification worker tasks.
Each task is published after a state transition commits and reloads what it
needs by id, so a slow mail server only ever delays the worker.
"""

import logging
from celery import shared_task

from apps.notifications.service import (
    NotificationService,
    order_confirmation_email,
    order_status_email,
    payment_failed_email,
)

logger = logging.getLogger("storefront.tasks")

# order status -> in-app template
STATUS_EVENTS = {
    "shipped":   "order_shipped",
    "delivered": "order_delivered",
    "cancelled": "order_canceled",
}


def publish(task, *args):
    """Queue a notification task. Broker failures are logged, never raised."""
    try:
        task.delay(*args)
    except Exception as exc:
        logger.error("Could not publish %s%s: %s", task.name, args, exc)
        return False
    return True


@shared_task
def send_order_confirmation(order_id: str):
    from apps.orders.models import Order

    try:
        order = Order.objects.select_related("user").get(id=order_id)
    except Order.DoesNotExist:
        logger.error("Order %s not found for confirmation", order_id)
        return

    notifier = NotificationService()
    notifier.notify_order(
        order.user, "order_confirmed",
        order_number=order.order_number, order_id=order.id,
    )
    subject, body = order_confirmation_email(order)
    notifier.send_email(order.user.email, subject, body)


@shared_task
def send_payment_failed(pending_id: str):
    from apps.payments.models import PendingPayment

    try:
        pending = PendingPayment.objects.select_related("user").get(id=pending_id)
    except PendingPayment.DoesNotExist:
        logger.warning("Pending payment %s gone before failure notice", pending_id)
        return

    notifier = NotificationService()
    notifier.notify_order(
        pending.user, "payment_failed",
        reason=pending.failure_reason or "Payment was not completed",
        pending_order_id=pending.id,
    )
    subject, body = payment_failed_email(pending)
    notifier.send_email(pending.user.email, subject, body)


@shared_task
def send_order_update(order_id: str, status: str):
    from apps.orders.models import Order

    try:
        order = Order.objects.select_related("user", "shipping_method").get(id=order_id)
    except Order.DoesNotExist:
        logger.error("Order %s not found for status update", order_id)
        return

    notifier = NotificationService()
    event = STATUS_EVENTS.get(status)
    if event:
        notifier.notify_order(
            order.user, event,
            order_number=order.order_number,
            order_id=order.id,
            estimated_days=order.shipping_method.estimated_days if order.shipping_method else 3,
        )
    subject, body = order_status_email(order)
    notifier.send_email(order.user.email, subject, body)
