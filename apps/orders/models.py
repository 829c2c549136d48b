"""
Order ledger.
An Order only ever comes into existence from a confirmed M-Pesa payment;
its pricing breakdown is copied from the PendingPayment snapshot and never
recomputed.
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING    = "pending",    "Pending"
        PROCESSING = "processing", "Processing"
        SHIPPED    = "shipped",    "Shipped"
        DELIVERED  = "delivered",  "Delivered"
        CANCELLED  = "cancelled",  "Cancelled"
        REFUNDED   = "refunded",   "Refunded"

    class PaymentStatus(models.TextChoices):
        PENDING  = "pending",  "Pending"
        PAID     = "paid",     "Paid"
        FAILED   = "failed",   "Failed"
        REFUNDED = "refunded", "Refunded"

    class PaymentMethod(models.TextChoices):
        MPESA = "mpesa", "M-Pesa"

    id                   = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number         = models.CharField(max_length=32, unique=True)
    user                 = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders"
    )
    shipping_address     = models.JSONField(encoder=DjangoJSONEncoder)
    billing_address      = models.JSONField(encoder=DjangoJSONEncoder)

    # Payment
    payment_method       = models.CharField(max_length=10, choices=PaymentMethod.choices,
                                            default=PaymentMethod.MPESA)
    payment_status       = models.CharField(max_length=10, choices=PaymentStatus.choices,
                                            default=PaymentStatus.PENDING)
    phone_number         = models.CharField(max_length=12)
    merchant_request_id  = models.CharField(max_length=100, unique=True)
    checkout_request_id  = models.CharField(max_length=100, blank=True)
    mpesa_receipt_number = models.CharField(max_length=50, blank=True, db_index=True)
    paid_at              = models.DateTimeField(null=True, blank=True)

    # Pricing breakdown
    subtotal             = models.DecimalField(max_digits=12, decimal_places=2)
    discount             = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax                  = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_cost        = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total                = models.DecimalField(max_digits=12, decimal_places=2)
    coupon               = models.ForeignKey(
        "catalog.Coupon", on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )
    coupon_snapshot      = models.JSONField(encoder=DjangoJSONEncoder, null=True, blank=True)

    # Fulfilment
    shipping_method      = models.ForeignKey(
        "catalog.ShippingMethod", on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )
    shipping_method_name = models.CharField(max_length=80)
    estimated_delivery   = models.DateTimeField(null=True, blank=True)
    status               = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING)
    tracking_number      = models.CharField(max_length=64, blank=True)
    notes                = models.TextField(blank=True)
    delivered_at         = models.DateTimeField(null=True, blank=True)
    cancelled_at         = models.DateTimeField(null=True, blank=True)
    created_at           = models.DateTimeField(auto_now_add=True)
    updated_at           = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["user", "-created_at"], name="order_user_created_idx"),
            models.Index(fields=["status"],              name="order_status_idx"),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"


class OrderItem(models.Model):
    order    = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product  = models.ForeignKey(
        "catalog.Product", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    title    = models.CharField(max_length=200)
    sku      = models.CharField(max_length=64, blank=True)
    image    = models.URLField(max_length=500, blank=True)
    price    = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    variant  = models.JSONField(null=True, blank=True)

    def __str__(self):
        return f"{self.quantity} x {self.title}"

    @property
    def line_total(self):
        return self.price * self.quantity


class OrderEvent(models.Model):
    """Append-only status history. One row per transition."""
    order       = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="events")
    from_status = models.CharField(max_length=12, blank=True)
    to_status   = models.CharField(max_length=12)
    actor       = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    note        = models.CharField(max_length=255, blank=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.order.order_number}: {self.from_status or '-'} → {self.to_status}"
