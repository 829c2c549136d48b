from django.contrib import admin
from .models import PendingPayment


@admin.register(PendingPayment)
class PendingPaymentAdmin(admin.ModelAdmin):
    list_display  = ("merchant_request_id", "user", "total", "phone_number", "status", "failure_reason", "created_at")
    list_filter   = ("status",)
    search_fields = ("merchant_request_id", "checkout_request_id", "phone_number", "user__email")
    readonly_fields = ("id", "merchant_request_id", "checkout_request_id", "items", "stock_reservations",
                       "created_at", "updated_at")
