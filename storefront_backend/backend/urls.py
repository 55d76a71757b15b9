# backend/urls.py
"""
PROJECT URLS

Everything the storefront talks to is under /api/:
- cart/       customer cart
- orders/     direct checkout, payment links, link status, staff lifecycle
- payments/   gateway webhooks (no JWT; optional HMAC signature)
- shipping/   freight quotes

Admin lives at ADMIN_PATH (env) instead of a guessable default in prod.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connection
from django.db.utils import DatabaseError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

STOREFRONT_ROUTES = {
    "cart": "/api/cart/",
    "orders": "/api/orders/",
    "checkout_session": "/api/orders/checkout-session/",
    "freight_quote": "/api/shipping/quote/",
    "pagarme_webhook": "/api/payments/webhook/pagarme/",
    "profile": "/api/auth/me/",
    "token": "/api/auth/jwt/create/",
    "docs": "/api/docs/",
}


@extend_schema(
    responses=inline_serializer(
        name="ApiIndex",
        fields={
            "service": serializers.CharField(),
            "routes": serializers.DictField(child=serializers.CharField()),
        },
    )
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_index(request):
    return Response({"service": "storefront-backend", "routes": STOREFRONT_ROUTES})


@extend_schema(
    responses={
        (200, "application/json"): inline_serializer(
            name="Health",
            fields={"status": serializers.CharField(), "db": serializers.CharField()},
        ),
    }
)
@api_view(["GET"])
@permission_classes([AllowAny])
@throttle_classes([])
def health(request):
    """Liveness plus a round trip to the database."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as exc:
        return Response({"status": "degraded", "db": "down", "error": str(exc)}, status=503)
    return Response({"status": "ok", "db": "ok"})


admin_path = settings.ADMIN_PATH.strip("/") + "/"

api_urlpatterns = [
    path("", api_index, name="api-root"),
    path("health/", health, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("auth/", include("users.urls")),
    path("cart/", include("cart.urls")),
    path("orders/", include("orders.urls")),
    path("payments/", include("payments.urls")),
    path("shipping/", include("shipping.urls")),
]

urlpatterns = [
    path(admin_path, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
