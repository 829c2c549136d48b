"""
Inventory and promotion counters.

Every mutation is a single conditional UPDATE so concurrent checkouts can
never read-modify-write the same row.
"""

import logging

from django.db.models import F

from apps.catalog.models import Product, Coupon, TaxRate

logger = logging.getLogger("storefront.catalog")


class StockShortfall(Exception):
    """Live stock no longer covers a quantity that was already paid for."""

    def __init__(self, product_id, quantity):
        self.product_id = product_id
        self.quantity   = quantity
        super().__init__(f"Insufficient stock for product {product_id} (needed {quantity})")


def try_decrement(product_id, quantity) -> bool:
    """Decrement stock only if at least `quantity` units remain."""
    updated = Product.objects.filter(pk=product_id, stock__gte=quantity).update(
        stock=F("stock") - quantity
    )
    return updated == 1


def deduct_stock(product_id, quantity) -> None:
    """
    Deduct paid-for stock. A product deleted since checkout is skipped;
    a product that exists but cannot cover the quantity raises StockShortfall.
    """
    if try_decrement(product_id, quantity):
        logger.info("Stock for product %s reduced by %s", product_id, quantity)
        return
    if not Product.objects.filter(pk=product_id).exists():
        logger.warning("Product %s no longer exists, skipping stock deduction", product_id)
        return
    raise StockShortfall(product_id, quantity)


def restock(product_id, quantity) -> bool:
    updated = Product.objects.filter(pk=product_id).update(stock=F("stock") + quantity)
    if not updated:
        logger.warning("Cannot restock missing product %s", product_id)
    return updated == 1


def increment_coupon_usage(coupon_id) -> None:
    Coupon.objects.filter(pk=coupon_id).update(used_count=F("used_count") + 1)


def find_tax_rate(amount):
    """First bracket whose [min_amount, max_amount] contains `amount`, or None."""
    return (
        TaxRate.objects
        .filter(min_amount__lte=amount, max_amount__gte=amount)
        .order_by("min_amount")
        .first()
    )
