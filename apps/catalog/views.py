"""Checkout configuration endpoints: shipping methods and tax brackets."""

from rest_framework import generics, serializers
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import extend_schema

from .models import ShippingMethod, TaxRate


class ShippingMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model  = ShippingMethod
        fields = ["id", "name", "description", "cost", "estimated_days", "min_free"]


class TaxRateSerializer(serializers.ModelSerializer):
    class Meta:
        model  = TaxRate
        fields = ["id", "min_amount", "max_amount", "rate"]


@extend_schema(tags=["Catalog"], summary="Active shipping methods for checkout")
class ShippingMethodListView(generics.ListAPIView):
    serializer_class   = ShippingMethodSerializer
    permission_classes = [AllowAny]
    pagination_class   = None
    queryset           = ShippingMethod.objects.filter(is_active=True).order_by("cost", "name")


@extend_schema(tags=["Catalog"], summary="Tax brackets applied to the discounted subtotal")
class TaxRateListView(generics.ListAPIView):
    serializer_class   = TaxRateSerializer
    permission_classes = [AllowAny]
    pagination_class   = None
    queryset           = TaxRate.objects.all()
