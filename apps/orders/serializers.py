"""Order serializers."""

from rest_framework import serializers
from .models import Order, OrderItem, OrderEvent


# ── Submission ────────────────────────────────────────────────────────────────
class AddressSerializer(serializers.Serializer):
    full_name   = serializers.CharField(max_length=120)
    phone       = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address     = serializers.CharField(max_length=255)
    city        = serializers.CharField(max_length=80)
    county      = serializers.CharField(max_length=80, required=False, allow_blank=True)
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country     = serializers.CharField(max_length=60, required=False, default="Kenya")


class CheckoutItemSerializer(serializers.Serializer):
    product  = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    variant  = serializers.JSONField(required=False, allow_null=True)


class AppliedCouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=40)


class OrderSubmitSerializer(serializers.Serializer):
    items            = CheckoutItemSerializer(many=True, allow_empty=False)
    shipping_address = AddressSerializer()
    billing_address  = AddressSerializer(required=False, allow_null=True)
    payment_method   = serializers.CharField(max_length=20)
    shipping_method  = serializers.IntegerField(min_value=1)
    total_amount     = serializers.DecimalField(max_digits=14, decimal_places=4, min_value=0)
    applied_coupon   = AppliedCouponSerializer(required=False, allow_null=True)
    phone_number     = serializers.CharField(max_length=20)


# ── Read ──────────────────────────────────────────────────────────────────────
class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model  = OrderItem
        fields = ["product", "title", "sku", "image", "price", "quantity", "variant", "line_total"]


class OrderEventSerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source="actor.full_name", read_only=True, default=None)

    class Meta:
        model  = OrderEvent
        fields = ["from_status", "to_status", "actor_name", "note", "created_at"]


class OrderSerializer(serializers.ModelSerializer):
    items         = OrderItemSerializer(many=True, read_only=True)
    events        = OrderEventSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source="user.full_name", read_only=True)

    class Meta:
        model  = Order
        fields = [
            "id", "order_number", "customer_name", "status",
            "items", "shipping_address", "billing_address",
            "payment_method", "payment_status", "phone_number",
            "merchant_request_id", "checkout_request_id", "mpesa_receipt_number", "paid_at",
            "subtotal", "discount", "tax", "shipping_cost", "total", "coupon_snapshot",
            "shipping_method_name", "estimated_delivery", "tracking_number", "notes",
            "events", "created_at", "delivered_at", "cancelled_at",
        ]


# ── Lifecycle ─────────────────────────────────────────────────────────────────
class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status          = serializers.ChoiceField(choices=Order.Status.choices)
    tracking_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    note            = serializers.CharField(max_length=255, required=False, allow_blank=True)
