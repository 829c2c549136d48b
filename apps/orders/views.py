"""Order API views: checkout submission, payment polling, order lifecycle."""

import logging
import uuid

from django.conf import settings
from django.shortcuts import get_object_or_404
from django.urls import reverse
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from apps.payments.models import PendingPayment
from .exceptions import CheckoutError
from .models import Order
from .service import CheckoutService, OrderService
from . import serializers as sz

logger = logging.getLogger("storefront.checkout")
checkout_service = CheckoutService()
order_service    = OrderService()


def error_response(error: CheckoutError) -> Response:
    return Response(error.as_response_data(), status=error.status_code)


def _order_queryset(user):
    qs = Order.objects.select_related("user").prefetch_related("items", "events__actor")
    return qs if user.is_store_admin else qs.filter(user=user)


# ── GET/POST /api/orders/ ─────────────────────────────────────────────────────
class OrderListCreateView(generics.ListAPIView):
    serializer_class   = sz.OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "payment_status"]

    def get_queryset(self):
        return _order_queryset(self.request.user)

    @extend_schema(tags=["Orders"], summary="List my orders (admins see every order)")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Orders"],
        summary="Submit checkout and send an M-Pesa STK push",
        request=sz.OrderSubmitSerializer,
    )
    def post(self, request):
        try:
            # Unverified accounts are turned away before the body is even looked at
            checkout_service.ensure_email_verified(request.user)
            ser = sz.OrderSubmitSerializer(data=request.data)
            ser.is_valid(raise_exception=True)
            pending = checkout_service.submit(request.user, ser.validated_data)
        except CheckoutError as e:
            return error_response(e)

        return Response({
            "success":          True,
            "message":          "Payment request sent. Enter your M-Pesa PIN on your phone to complete the order.",
            "pending_order_id": str(pending.id),
            "poll_url":         reverse("payment-status", args=[pending.id]),
            "poll_interval":    settings.CHECKOUT_POLL_INTERVAL_MS,
        }, status=status.HTTP_200_OK)


# ── GET /api/orders/payment-status/{pending_order_id}/ ────────────────────────
@extend_schema(tags=["Orders"], summary="Poll the outcome of an M-Pesa checkout")
class PaymentStatusView(APIView):
    """Read-only. Records may vanish between polls (purge); that is a normal not_found."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pending_order_id):
        try:
            pending_uuid = uuid.UUID(str(pending_order_id))
        except ValueError:
            return Response({
                "success": False,
                "error":   "invalid_id_format",
                "message": "The provided order ID is not valid",
            }, status=status.HTTP_400_BAD_REQUEST)

        pending = PendingPayment.objects.filter(id=pending_uuid, user=request.user).first()
        if pending is None:
            return Response({
                "success":        False,
                "error":          "not_found",
                "payment_status": "not_found",
                "message":        "Payment request not found",
                "action": {"type": "redirect", "destination": "/cart", "message": "Return to cart and try again"},
            }, status=status.HTTP_404_NOT_FOUND)

        if pending.status == PendingPayment.Status.PROCESSED:
            order = Order.objects.filter(merchant_request_id=pending.merchant_request_id).first()
            if order is None:
                logger.warning("Pending %s processed but no order found", pending.merchant_request_id)
            return Response({
                "success":        True,
                "payment_status": "completed",
                "message":        "Payment successful! Your order has been confirmed.",
                "order_details":  {"order_id": str(order.id), "order_number": order.order_number} if order else None,
                "action": {"type": "redirect", "destination": "/orders", "message": "View your orders"},
            })

        if pending.status == PendingPayment.Status.FAILED:
            return Response({
                "success":        False,
                "payment_status": "failed",
                "message":        pending.failure_reason or "Payment failed.",
                "details":        "This could be due to insufficient funds, wrong PIN, or cancelled transaction.",
                "action": {"type": "retry", "message": "Retry Payment", "original_amount": str(pending.total)},
                "retry_allowed":  True,
            })

        if pending.status == PendingPayment.Status.EXPIRED:
            return Response({
                "success":        False,
                "payment_status": "expired",
                "message":        "Payment request expired",
                "details":        "You took too long to complete the payment",
                "next_steps": [
                    "Click retry to get a new payment prompt",
                    f"Complete the payment within {settings.PENDING_PAYMENT_TTL_SECONDS // 60} minutes",
                ],
                "action": {"type": "retry", "message": "Retry Payment", "original_amount": str(pending.total)},
                "retry_allowed":  True,
            })

        return Response({
            "success":          True,
            "payment_status":   "pending",
            "message":          "Waiting for your payment confirmation",
            "next_steps": [
                "Check your phone for the M-Pesa prompt",
                "Enter your M-Pesa PIN to complete payment",
                "Do not close this page",
            ],
            "pending_order_id": str(pending.id),
        })


# ── GET /api/orders/{id}/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="Retrieve an order")
class OrderDetailView(generics.RetrieveAPIView):
    serializer_class   = sz.OrderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return _order_queryset(self.request.user)


# ── POST /api/orders/{id}/cancel/ ─────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="Cancel my order (within 15 minutes, before shipping)",
               request=sz.OrderCancelSerializer)
class OrderCancelView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        order = get_object_or_404(_order_queryset(request.user), pk=pk)
        ser = sz.OrderCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            order = order_service.cancel(order, request.user, ser.validated_data.get("reason", ""))
        except CheckoutError as e:
            return error_response(e)
        return Response(sz.OrderSerializer(order).data)


# ── PATCH /api/orders/{id}/status/ ────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="Advance order status (Admin only)",
               request=sz.OrderStatusUpdateSerializer)
class OrderStatusUpdateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        if not request.user.is_store_admin:
            return Response({"error": "Admin only."}, status=status.HTTP_403_FORBIDDEN)
        order = get_object_or_404(Order, pk=pk)
        ser = sz.OrderStatusUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        try:
            order = order_service.update_status(
                order, d["status"], request.user,
                tracking_number=d.get("tracking_number", ""),
                note=d.get("note", ""),
            )
        except CheckoutError as e:
            return error_response(e)
        return Response(sz.OrderSerializer(order).data)


# ── POST /api/orders/{id}/reorder/ ────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="Cart lines to buy an earlier order again")
class OrderReorderView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk, user=request.user)
        items = order_service.reorder_items(order)
        return Response({"success": True, "items": items, "unavailable": len(order.items.all()) - len(items)})
