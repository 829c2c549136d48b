from django.urls import path
from .views import ShippingMethodListView, TaxRateListView

urlpatterns = [
    path("shipping-methods/", ShippingMethodListView.as_view(), name="shipping-methods"),
    path("tax-rates/",        TaxRateListView.as_view(),        name="tax-rates"),
]
