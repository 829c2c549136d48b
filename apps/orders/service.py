"""
CheckoutService + OrderService: the order pipeline.

Flow:  submit  →  price  →  STK push  →  PendingPayment
                                             ↓   (M-Pesa callback)
                               create_from_pending  →  Order  →  cancel / update_status

Nothing durable besides the PendingPayment changes until payment is confirmed.
"""

import logging
import random
import string
import time
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.authentication.validators import normalize_ke_phone
from apps.catalog import service as catalog
from apps.catalog.models import Product, Coupon, ShippingMethod
from apps.notifications.tasks import publish, send_order_update
from apps.orders.models import Order, OrderItem, OrderEvent
from apps.orders import exceptions as exc
from apps.payments.gateway import GatewayError, get_payment_adapter
from apps.payments.models import PendingPayment

logger = logging.getLogger("storefront.checkout")

TWO_PLACES = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _generate_order_number():
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class PricingCalculator:
    """
    Server-side price recomputation.
    discount → discounted subtotal → shipping (free tier) → tax bracket → total.
    Values are returned unrounded; callers quantize for storage.
    """

    def discount_for(self, coupon, subtotal: Decimal) -> Decimal:
        if coupon is None:
            return Decimal("0")
        if coupon.type == Coupon.Type.PERCENTAGE:
            discount = subtotal * coupon.amount / Decimal("100")
        else:
            discount = coupon.amount
        # a large fixed coupon on a small cart zeroes the subtotal, never below
        return min(discount, subtotal)

    def shipping_for(self, method, discounted_subtotal: Decimal) -> Decimal:
        if (
            method.name == settings.FREE_SHIPPING_METHOD_NAME
            and method.min_free
            and discounted_subtotal >= method.min_free
        ):
            return Decimal("0")
        return method.cost

    def tax_for(self, discounted_subtotal: Decimal):
        bracket = catalog.find_tax_rate(discounted_subtotal)
        if bracket is None:
            logger.warning("No tax bracket covers Ksh %s, charging zero tax", discounted_subtotal)
            return Decimal("0"), Decimal("0")
        return discounted_subtotal * bracket.rate, bracket.rate

    def calculate(self, subtotal: Decimal, coupon=None, shipping_method=None) -> dict:
        discount   = self.discount_for(coupon, subtotal)
        discounted = subtotal - discount
        shipping   = self.shipping_for(shipping_method, discounted) if shipping_method else Decimal("0")
        tax, rate  = self.tax_for(discounted)
        return {
            "subtotal":            subtotal,
            "discount":            discount,
            "discounted_subtotal": discounted,
            "shipping_cost":       shipping,
            "tax_rate":            rate,
            "tax":                 tax,
            "total":               discounted + shipping + tax,
        }


class CheckoutService:
    """
    Order submission. Dependencies are injected so they can be swapped in tests.
    """

    STK_DESCRIPTION = "Payment for your purchase"

    def __init__(self, pricing_calculator=None, gateway=None):
        self.pricing = pricing_calculator or PricingCalculator()
        self.gateway = gateway

    def get_gateway(self):
        return self.gateway or get_payment_adapter()

    # ── Step 1: account ───────────────────────────────────────────────────────
    def ensure_email_verified(self, user):
        if not user.is_email_verified:
            raise exc.EmailNotVerified()

    # ── Step 2: phone / method ────────────────────────────────────────────────
    def normalize_phone(self, raw: str) -> str:
        phone = normalize_ke_phone(raw)
        if phone is None:
            raise exc.InvalidPhone()
        return phone

    # ── Step 3-4: line items ──────────────────────────────────────────────────
    def freeze_items(self, items):
        """Snapshot each line at current price. Returns (lines, reservations, subtotal)."""
        lines, requested = [], {}
        subtotal = Decimal("0")

        for item in items:
            product = Product.objects.filter(pk=item["product"], is_active=True).first()
            if product is None:
                raise exc.ProductNotFound(f"Product {item['product']} not found", product=item["product"])

            quantity = item["quantity"]
            requested[product.pk] = requested.get(product.pk, 0) + quantity
            if requested[product.pk] > product.stock:
                raise exc.InsufficientStock(
                    f"Insufficient stock for {product.title}. Only {product.stock} left.",
                    product=product.pk, available=product.stock,
                )

            price = product.effective_price
            subtotal += price * quantity
            lines.append({
                "product":  product.pk,
                "title":    product.title,
                "image":    product.image_url,
                "sku":      product.sku,
                "price":    str(price),
                "quantity": quantity,
                "variant":  item.get("variant"),
            })

        reservations = [{"product": pid, "quantity": qty} for pid, qty in requested.items()]
        return lines, reservations, subtotal

    # ── Step 5: coupon ────────────────────────────────────────────────────────
    def resolve_coupon(self, code, subtotal: Decimal):
        if not code:
            return None
        coupon = Coupon.objects.filter(code__iexact=code.strip(), is_active=True).first()
        if coupon is None or (coupon.expires_at and coupon.expires_at < timezone.now()):
            raise exc.InvalidCoupon()
        if subtotal < coupon.min_amount:
            raise exc.CouponMinimumNotMet(
                f"Minimum order amount of Ksh {coupon.min_amount} required for this coupon."
            )
        if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
            raise exc.CouponLimitReached()
        return coupon

    def resolve_shipping_method(self, method_id):
        method = ShippingMethod.objects.filter(pk=method_id, is_active=True).first()
        if method is None:
            raise exc.InvalidShippingMethod()
        return method

    # ── Full submission ───────────────────────────────────────────────────────
    def submit(self, user, data: dict) -> PendingPayment:
        """
        Validate, price and push an STK request. Only a PendingPayment is
        written; stock, coupons and orders are untouched until confirmation.
        """
        self.ensure_email_verified(user)
        phone = self.normalize_phone(data["phone_number"])
        if data["payment_method"].lower() != Order.PaymentMethod.MPESA:
            raise exc.UnsupportedPaymentMethod()

        lines, reservations, subtotal = self.freeze_items(data["items"])
        coupon_code = (data.get("applied_coupon") or {}).get("code")
        coupon      = self.resolve_coupon(coupon_code, subtotal)
        method      = self.resolve_shipping_method(data["shipping_method"])
        pricing     = self.pricing.calculate(subtotal, coupon, method)

        received   = Decimal(data["total_amount"])
        difference = abs(pricing["total"] - received)
        if difference > Decimal(settings.PRICE_TOLERANCE):
            logger.warning(
                "Total mismatch for %s: calculated %s, received %s",
                user.pk, pricing["total"], received,
            )
            raise exc.TotalMismatch(
                calculated=str(money(pricing["total"])),
                received=str(money(received)),
                difference=str(money(difference)),
            )

        amount    = int(pricing["total"].quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        reference = f"TEMP_{int(time.time() * 1000)}"
        now       = timezone.now()

        # The gateway round trip runs outside any database transaction
        gateway = self.get_gateway()
        try:
            result = gateway.stk_push(phone, amount, reference, self.STK_DESCRIPTION)
        except GatewayError as e:
            logger.error("STK push failed for %s (%s): %s", user.pk, reference, e)
            raise exc.PaymentInitiationFailed() from e
        if not result.merchant_request_id:
            logger.error("STK push for %s returned no MerchantRequestID", reference)
            raise exc.PaymentInitiationFailed()

        with transaction.atomic():
            pending = PendingPayment.objects.create(
                merchant_request_id  = result.merchant_request_id,
                checkout_request_id  = result.checkout_request_id,
                user                 = user,
                items                = lines,
                shipping_address     = data["shipping_address"],
                billing_address      = data.get("billing_address") or data["shipping_address"],
                subtotal             = money(pricing["subtotal"]),
                discount             = money(pricing["discount"]),
                tax                  = money(pricing["tax"]),
                shipping_cost        = money(pricing["shipping_cost"]),
                total                = money(pricing["total"]),
                coupon               = coupon,
                coupon_snapshot      = {
                    "code":   coupon.code,
                    "type":   coupon.type,
                    "amount": str(coupon.amount),
                } if coupon else None,
                shipping_method      = method,
                shipping_method_name = method.name,
                estimated_delivery   = now + timedelta(days=method.estimated_days),
                stock_reservations   = reservations,
                phone_number         = phone,
            )
            gateway.on_pending_created(pending, amount)

        logger.info(
            "Pending payment %s created for %s: Ksh %s (%s)",
            pending.id, user.pk, pending.total, result.merchant_request_id,
        )
        return pending


class OrderService:
    """Order materialization and post-payment lifecycle."""

    LOCKED_STATUSES = {
        Order.Status.SHIPPED, Order.Status.DELIVERED,
        Order.Status.CANCELLED, Order.Status.REFUNDED,
    }
    TRANSITIONS = {
        Order.Status.PENDING:    {Order.Status.PROCESSING, Order.Status.CANCELLED},
        Order.Status.PROCESSING: {Order.Status.SHIPPED, Order.Status.CANCELLED},
        Order.Status.SHIPPED:    {Order.Status.DELIVERED},
        Order.Status.DELIVERED:  {Order.Status.REFUNDED},
    }

    # ── Materialization (inside the callback transaction) ─────────────────────
    def create_from_pending(self, pending: PendingPayment, receipt_number: str,
                            checkout_request_id: str = "") -> Order:
        """
        Build the Order from the frozen snapshot and apply stock and coupon
        counters. Caller owns the transaction; any exception rolls it all back.
        """
        order_number = _generate_order_number()
        while Order.objects.filter(order_number=order_number).exists():
            order_number = _generate_order_number()

        order = Order.objects.create(
            order_number         = order_number,
            user                 = pending.user,
            shipping_address     = pending.shipping_address,
            billing_address      = pending.billing_address,
            payment_status       = Order.PaymentStatus.PAID,
            phone_number         = pending.phone_number,
            merchant_request_id  = pending.merchant_request_id,
            checkout_request_id  = checkout_request_id or pending.checkout_request_id,
            mpesa_receipt_number = receipt_number,
            paid_at              = timezone.now(),
            subtotal             = pending.subtotal,
            discount             = pending.discount,
            tax                  = pending.tax,
            shipping_cost        = pending.shipping_cost,
            total                = pending.total,
            coupon_id            = pending.coupon_id,
            coupon_snapshot      = pending.coupon_snapshot,
            shipping_method_id   = pending.shipping_method_id,
            shipping_method_name = pending.shipping_method_name,
            estimated_delivery   = pending.estimated_delivery,
            status               = Order.Status.PROCESSING,
        )

        live_ids = set(
            Product.objects.filter(pk__in=[i["product"] for i in pending.items]).values_list("pk", flat=True)
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order      = order,
                product_id = i["product"] if i["product"] in live_ids else None,
                title      = i["title"],
                sku        = i.get("sku") or "",
                image      = i.get("image") or "",
                price      = Decimal(i["price"]),
                quantity   = i["quantity"],
                variant    = i.get("variant"),
            )
            for i in pending.items
        ])

        OrderEvent.objects.create(
            order=order, from_status="", to_status=Order.Status.PROCESSING, actor=None,
            note=f"Payment confirmed. M-Pesa receipt {receipt_number or 'n/a'}",
        )

        for reservation in pending.stock_reservations:
            catalog.deduct_stock(reservation["product"], reservation["quantity"])

        if pending.coupon_id:
            catalog.increment_coupon_usage(pending.coupon_id)

        logger.info("Order %s created from %s", order.order_number, pending.merchant_request_id)
        return order

    # ── Customer self-cancel ──────────────────────────────────────────────────
    def cancel(self, order: Order, user, reason: str = "") -> Order:
        """Owner-only cancellation within the window; restores stock for every item."""
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)

            if order.user_id != user.pk:
                raise exc.NotOrderOwner()
            if order.status in self.LOCKED_STATUSES:
                raise exc.OrderActionError(f"Cannot cancel an order that is {order.status}.")
            window = timedelta(minutes=settings.ORDER_CANCEL_WINDOW_MINUTES)
            if timezone.now() - order.created_at > window:
                raise exc.OrderActionError(
                    f"Orders can only be cancelled within {settings.ORDER_CANCEL_WINDOW_MINUTES} "
                    f"minutes of placing them."
                )

            previous = order.status
            self._restock(order)
            order.status       = Order.Status.CANCELLED
            order.cancelled_at = timezone.now()
            order.save(update_fields=["status", "cancelled_at", "updated_at"])
            OrderEvent.objects.create(
                order=order, from_status=previous, to_status=Order.Status.CANCELLED,
                actor=user, note=reason or "Cancelled by customer",
            )

        logger.info("Order %s cancelled by customer %s", order.order_number, user.pk)
        publish(send_order_update, str(order.id), Order.Status.CANCELLED)
        return order

    # ── Admin status change ───────────────────────────────────────────────────
    def update_status(self, order: Order, new_status: str, actor,
                      tracking_number: str = "", note: str = "") -> Order:
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            previous = order.status
            if new_status not in self.TRANSITIONS.get(previous, set()):
                raise exc.OrderActionError(f"Cannot change status from {previous} to {new_status}.")

            fields = ["status", "updated_at"]
            now = timezone.now()
            if new_status == Order.Status.CANCELLED:
                self._restock(order)
                order.cancelled_at = now
                fields.append("cancelled_at")
            elif new_status == Order.Status.DELIVERED:
                order.delivered_at = now
                fields.append("delivered_at")
            elif new_status == Order.Status.REFUNDED:
                order.payment_status = Order.PaymentStatus.REFUNDED
                fields.append("payment_status")
            if tracking_number:
                order.tracking_number = tracking_number
                fields.append("tracking_number")

            order.status = new_status
            order.save(update_fields=fields)
            OrderEvent.objects.create(
                order=order, from_status=previous, to_status=new_status, actor=actor, note=note,
            )

        logger.info("Order %s: %s → %s by %s", order.order_number, previous, new_status, actor.pk)
        publish(send_order_update, str(order.id), new_status)
        return order

    def _restock(self, order: Order):
        for item in order.items.all():
            if item.product_id:
                catalog.restock(item.product_id, item.quantity)

    # ── Reorder ───────────────────────────────────────────────────────────────
    def reorder_items(self, order: Order) -> list:
        """Cart lines for the order's items at today's price and stock."""
        items = []
        for item in order.items.select_related("product"):
            product = item.product
            if product is None or not product.is_active:
                continue
            items.append({
                "product":   product.pk,
                "title":     product.title,
                "image":     product.image_url,
                "price":     str(product.effective_price),
                "quantity":  min(item.quantity, product.stock),
                "variant":   item.variant,
                "available": product.stock >= item.quantity,
            })
        return items
