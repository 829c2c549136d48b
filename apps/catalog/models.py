"""
Catalogue models consumed by checkout.
Product stock and Coupon usage are the only counters the payment pipeline
mutates, and only through apps.catalog.service.
"""

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator


class Product(models.Model):
    title      = models.CharField(max_length=200)
    sku        = models.CharField(max_length=64, unique=True)
    price      = models.DecimalField(max_digits=12, decimal_places=2,
                                     validators=[MinValueValidator(0)])
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True,
                                     validators=[MinValueValidator(0)])
    stock      = models.PositiveIntegerField(default=0)
    image_url  = models.URLField(max_length=500, blank=True)
    is_active  = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]

    def __str__(self):
        return f"{self.title} ({self.sku})"

    @property
    def effective_price(self):
        """Sale price wins over list price when set."""
        return self.sale_price if self.sale_price else self.price


class Coupon(models.Model):
    class Type(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED      = "fixed",      "Fixed amount"

    code       = models.CharField(max_length=40, unique=True)
    type       = models.CharField(max_length=10, choices=Type.choices)
    amount     = models.DecimalField(max_digits=10, decimal_places=2,
                                     validators=[MinValueValidator(0)])
    min_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    max_uses   = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active  = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.code


class ShippingMethod(models.Model):
    name           = models.CharField(max_length=80)
    description    = models.CharField(max_length=255, blank=True)
    cost           = models.DecimalField(max_digits=10, decimal_places=2,
                                         validators=[MinValueValidator(0)])
    estimated_days = models.PositiveIntegerField(default=3)
    min_free       = models.DecimalField(max_digits=12, decimal_places=2, default=0)  # free at/above this subtotal
    is_active      = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} (Ksh {self.cost})"


class TaxRate(models.Model):
    """Tax bracket: `rate` applies to discounted subtotals within [min_amount, max_amount]."""
    min_amount = models.DecimalField(max_digits=12, decimal_places=2,
                                     validators=[MinValueValidator(0)])
    max_amount = models.DecimalField(max_digits=12, decimal_places=2)
    rate       = models.DecimalField(max_digits=5, decimal_places=4,
                                     validators=[MinValueValidator(0), MaxValueValidator(1)])

    class Meta:
        ordering = ["min_amount"]

    def __str__(self):
        return f"{self.min_amount}-{self.max_amount} @ {self.rate}"
