"""
Notification service.
Writes in-app notifications and sends email through Django's mail framework.
Fails silently: a broken mail server or notification table never blocks
the payment or order flow.
"""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail
from django.db import DatabaseError

logger = logging.getLogger("storefront.notifications")


# event -> (type, priority, title, message, action text, action link)
ORDER_TEMPLATES = {
    "order_confirmed": (
        "order", "high", "Order Confirmed",
        "Your order #{order_number} has been confirmed and is being processed.",
        "View Order", "/orders/{order_id}",
    ),
    "order_shipped": (
        "order", "medium", "Order Shipped",
        "Your order #{order_number} is on its way! Estimated delivery in {estimated_days} days.",
        "Track Order", "/orders/{order_id}",
    ),
    "order_delivered": (
        "order", "medium", "Order Delivered",
        "Your order #{order_number} has been delivered. Tell us what you think of your purchase!",
        "Rate Products", "/orders/{order_id}",
    ),
    "order_canceled": (
        "order", "medium", "Order Cancelled",
        "Your order #{order_number} has been cancelled.",
        "View Order", "/orders/{order_id}",
    ),
    "payment_failed": (
        "payment", "high", "Payment Failed",
        "We could not complete your M-Pesa payment: {reason}",
        "Try Again", "/checkout",
    ),
}


class NotificationService:
    """In-app notifications and email. Every method returns a bool and never raises."""

    def notify_order(self, user, event: str, **context) -> bool:
        template = ORDER_TEMPLATES.get(event)
        if template is None:
            logger.warning("No notification template for event %s", event)
            return False

        from apps.notifications.models import Notification

        ntype, priority, title, message, action_text, action_link = template
        try:
            Notification.objects.create(
                user        = user,
                type        = ntype,
                priority    = priority,
                title       = title,
                message     = message.format(**context),
                action_text = action_text,
                action_link = action_link.format(**context),
                metadata    = {k: str(v) for k, v in context.items()},
            )
        except (KeyError, DatabaseError) as exc:
            logger.warning("Notification %s failed for %s: %s", event, user.pk, exc)
            return False
        logger.info("Notification %s created for %s", event, user.pk)
        return True

    def send_email(self, email: str, subject: str, body: str) -> bool:
        if not email:
            return False
        try:
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=False)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email to %s failed: %s", email, exc)
            return False
        logger.info("EMAIL → %s | Subject: %s", email, subject)
        return True


# ── Email bodies ──────────────────────────────────────────────────────────────
def order_confirmation_email(order) -> tuple:
    """Itemized confirmation email for a freshly paid order."""
    lines = [
        f"Hi {order.user.full_name},",
        "",
        f"Thank you for your order #{order.order_number}.",
        f"M-Pesa receipt: {order.mpesa_receipt_number}",
        "",
    ]
    for item in order.items.all():
        lines.append(f"  {item.quantity} x {item.title}  @ Ksh {item.price}  = Ksh {item.line_total}")
    lines += [
        "",
        f"Subtotal:  Ksh {order.subtotal}",
    ]
    if order.discount:
        lines.append(f"Discount: -Ksh {order.discount}")
    lines += [
        f"Shipping:  Ksh {order.shipping_cost} ({order.shipping_method_name})",
        f"Tax:       Ksh {order.tax}",
        f"Total:     Ksh {order.total}",
        "",
    ]
    if order.estimated_delivery:
        lines.append(f"Estimated delivery: {order.estimated_delivery:%d %b %Y}")
    lines += [
        f"Track your order: {settings.CLIENT_URL}/orders/{order.id}",
        "",
        "Storefront Team",
    ]
    return f"Order Confirmation #{order.order_number}", "\n".join(lines)


def order_status_email(order) -> tuple:
    lines = [
        f"Hi {order.user.full_name},",
        "",
        f"Your order #{order.order_number} is now {order.get_status_display().lower()}.",
    ]
    if order.tracking_number:
        lines.append(f"Tracking number: {order.tracking_number}")
    lines += [
        f"Details: {settings.CLIENT_URL}/orders/{order.id}",
        "",
        "Storefront Team",
    ]
    return f"Order #{order.order_number} update", "\n".join(lines)


def payment_failed_email(pending) -> tuple:
    body = (
        f"Hi {pending.user.full_name},\n\n"
        f"Your M-Pesa payment of Ksh {pending.total} could not be completed.\n"
        f"Reason: {pending.failure_reason or 'Payment was not completed'}\n\n"
        f"No money has been taken for this order. You can try again at "
        f"{settings.CLIENT_URL}/checkout\n\nStorefront Team"
    )
    return "Payment failed", body
