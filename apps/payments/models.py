"""
PendingPayment: a checkout awaiting M-Pesa confirmation.

State machine:  pending ─┬─> processed   (success callback, order created)
                         ├─> failed      (failure callback or order creation error)
                         └─> expired     (expiry sweep after the TTL)

Every transition is a conditional update on status='pending', so duplicate
or concurrent callbacks can never move a record twice.
"""

import uuid
from datetime import timedelta

from django.db import models
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone


class PendingPaymentQuerySet(models.QuerySet):

    def pending(self):
        return self.filter(status=PendingPayment.Status.PENDING)

    def claim_for_processing(self, merchant_request_id):
        """Row-lock the pending record. Must be called inside transaction.atomic()."""
        return (
            self.select_for_update()
            .filter(merchant_request_id=merchant_request_id, status=PendingPayment.Status.PENDING)
            .first()
        )

    def mark_failed(self, merchant_request_id, reason: str) -> bool:
        updated = self.filter(
            merchant_request_id=merchant_request_id, status=PendingPayment.Status.PENDING,
        ).update(
            status         = PendingPayment.Status.FAILED,
            failure_reason = (reason or "")[:255],
            updated_at     = timezone.now(),
        )
        return updated == 1

    def stale(self, now=None):
        now = now or timezone.now()
        cutoff = now - timedelta(seconds=settings.PENDING_PAYMENT_TTL_SECONDS)
        return self.pending().filter(created_at__lt=cutoff)

    def expire_stale(self, now=None) -> int:
        now = now or timezone.now()
        return self.stale(now).update(status=PendingPayment.Status.EXPIRED, updated_at=now)

    def purge_settled(self, now=None) -> int:
        """Delete terminal records older than the retention window."""
        now = now or timezone.now()
        cutoff = now - timedelta(hours=settings.PENDING_PAYMENT_RETENTION_HOURS)
        deleted, _ = (
            self.exclude(status=PendingPayment.Status.PENDING)
            .filter(created_at__lt=cutoff)
            .delete()
        )
        return deleted


class PendingPayment(models.Model):
    class Status(models.TextChoices):
        PENDING   = "pending",   "Pending"
        FAILED    = "failed",    "Failed"
        EXPIRED   = "expired",   "Expired"
        PROCESSED = "processed", "Processed"

    TERMINAL = (Status.FAILED, Status.EXPIRED, Status.PROCESSED)

    id                   = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    merchant_request_id  = models.CharField(max_length=100, unique=True)
    checkout_request_id  = models.CharField(max_length=100, db_index=True)
    user                 = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="pending_payments"
    )

    # Snapshot frozen at submission; never recomputed
    items                = models.JSONField(encoder=DjangoJSONEncoder)
    shipping_address     = models.JSONField(encoder=DjangoJSONEncoder)
    billing_address      = models.JSONField(encoder=DjangoJSONEncoder)
    subtotal             = models.DecimalField(max_digits=12, decimal_places=2)
    discount             = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax                  = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_cost        = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total                = models.DecimalField(max_digits=12, decimal_places=2)
    coupon               = models.ForeignKey(
        "catalog.Coupon", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    coupon_snapshot      = models.JSONField(encoder=DjangoJSONEncoder, null=True, blank=True)
    shipping_method      = models.ForeignKey(
        "catalog.ShippingMethod", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    shipping_method_name = models.CharField(max_length=80)
    estimated_delivery   = models.DateTimeField(null=True, blank=True)
    stock_reservations   = models.JSONField(default=list)   # [{"product": id, "quantity": n}]
    phone_number         = models.CharField(max_length=12)

    status               = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    failure_reason       = models.CharField(max_length=255, blank=True)
    created_at           = models.DateTimeField(auto_now_add=True)
    updated_at           = models.DateTimeField(auto_now=True)

    objects = PendingPaymentQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="pending_status_created_idx"),
            models.Index(fields=["user", "status"],       name="pending_user_status_idx"),
        ]

    def __str__(self):
        return f"{self.merchant_request_id} ({self.status}, Ksh {self.total})"

    def mark_processed(self) -> bool:
        updated = PendingPayment.objects.filter(pk=self.pk, status=self.Status.PENDING).update(
            status=self.Status.PROCESSED, updated_at=timezone.now(),
        )
        if updated:
            self.status = self.Status.PROCESSED
        return updated == 1
