from django.contrib import admin
from .models import Product, Coupon, ShippingMethod, TaxRate


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display  = ("title", "sku", "price", "sale_price", "stock", "is_active")
    list_filter   = ("is_active",)
    search_fields = ("title", "sku")


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display  = ("code", "type", "amount", "min_amount", "used_count", "max_uses", "expires_at", "is_active")
    list_filter   = ("type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("used_count",)


@admin.register(ShippingMethod)
class ShippingMethodAdmin(admin.ModelAdmin):
    list_display  = ("name", "cost", "estimated_days", "min_free", "is_active")
    list_filter   = ("is_active",)


@admin.register(TaxRate)
class TaxRateAdmin(admin.ModelAdmin):
    list_display  = ("min_amount", "max_amount", "rate")
