from django.urls import path
from .views import (
    OrderListCreateView, PaymentStatusView, OrderDetailView,
    OrderCancelView, OrderStatusUpdateView, OrderReorderView,
)

urlpatterns = [
    path("",                                      OrderListCreateView.as_view(),   name="order-list"),
    path("payment-status/<str:pending_order_id>/", PaymentStatusView.as_view(),     name="payment-status"),
    path("<uuid:pk>/",                            OrderDetailView.as_view(),       name="order-detail"),
    path("<uuid:pk>/cancel/",                     OrderCancelView.as_view(),       name="order-cancel"),
    path("<uuid:pk>/status/",                     OrderStatusUpdateView.as_view(), name="order-status"),
    path("<uuid:pk>/reorder/",                    OrderReorderView.as_view(),      name="order-reorder"),
]
