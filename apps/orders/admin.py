from django.contrib import admin
from .models import Order, OrderItem, OrderEvent


class OrderItemInline(admin.TabularInline):
    model  = OrderItem
    extra  = 0
    readonly_fields = ("product", "title", "sku", "price", "quantity", "variant")


class OrderEventInline(admin.TabularInline):
    model  = OrderEvent
    extra  = 0
    readonly_fields = ("from_status", "to_status", "actor", "note", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display  = ("order_number", "user", "status", "payment_status", "total", "mpesa_receipt_number", "created_at")
    list_filter   = ("status", "payment_status")
    search_fields = ("order_number", "user__email", "mpesa_receipt_number", "merchant_request_id")
    readonly_fields = ("id", "order_number", "merchant_request_id", "checkout_request_id",
                       "mpesa_receipt_number", "paid_at", "created_at", "updated_at")
    inlines = [OrderItemInline, OrderEventInline]
