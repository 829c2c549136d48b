import uuid
from django.db import models
from django.conf import settings


class Notification(models.Model):
    """In-app notification shown in the customer's notification centre."""

    class Type(models.TextChoices):
        ORDER   = "order",   "Order"
        PAYMENT = "payment", "Payment"
        SYSTEM  = "system",  "System"

    class Priority(models.TextChoices):
        LOW    = "low",    "Low"
        MEDIUM = "medium", "Medium"
        HIGH   = "high",   "High"

    id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user        = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    type        = models.CharField(max_length=10, choices=Type.choices, default=Type.ORDER)
    title       = models.CharField(max_length=120)
    message     = models.TextField()
    action_text = models.CharField(max_length=40, blank=True)
    action_link = models.CharField(max_length=255, blank=True)
    priority    = models.CharField(max_length=6, choices=Priority.choices, default=Priority.MEDIUM)
    is_read     = models.BooleanField(default=False)
    metadata    = models.JSONField(default=dict, blank=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [models.Index(fields=["user", "is_read"], name="notif_user_read_idx")]

    def __str__(self):
        return f"{self.user}: {self.title}"
