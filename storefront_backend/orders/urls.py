"""
PATH: orders/urls.py

ORDER URLS
"""

from django.urls import path

from orders.views import (
    CheckoutSessionView,
    OrderLinkStatusView,
    OrderListCreateView,
    OrderStatusTransitionView,
)

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="orders"),
    path("checkout-session/", CheckoutSessionView.as_view(), name="checkout-session"),
    path("status/<str:link_id>/", OrderLinkStatusView.as_view(), name="link-status"),
    path("<uuid:order_id>/status/", OrderStatusTransitionView.as_view(), name="transition"),
]
