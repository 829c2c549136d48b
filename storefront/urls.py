"""Storefront root URL configuration."""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI / Interactive Docs
    path("api/schema/",  SpectacularAPIView.as_view(),       name="schema"),
    path("api/docs/",    SpectacularSwaggerView.as_view(), name="swagger-ui"),

    # Auth
    path("api/auth/",    include("apps.authentication.urls")),

    # Checkout
    path("api/catalog/", include("apps.catalog.urls")),
    path("api/orders/",  include("apps.orders.urls")),
    path("api/payments/",include("apps.payments.urls")),

    # Notifications
    path("api/notifications/", include("apps.notifications.urls")),

    # Ops
    path("api/health/", include("apps.ops.health_urls")),
    path("api/ops/",    include("apps.ops.ops_urls")),
]

# Prometheus metrics (only when installed)
try:
    import django_prometheus  # noqa: F401
    urlpatterns += [path("", include("django_prometheus.urls"))]
except ImportError:
    pass
