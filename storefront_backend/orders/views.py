# orders/views.py

"""
ORDER API VIEWS

Customer:
- POST orders/                        direct checkout (PENDING_PAYMENT order)
- GET  orders/                        own orders (?status=, paginated)
- POST orders/checkout-session/       hosted payment link
- GET  orders/status/<link_id>/       order status for a payment link

Staff:
- PATCH orders/<order_id>/status/     lifecycle transition
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from common.api import domain_error_response
from common.exceptions import StorefrontError
from orders.filters import OrderFilter
from orders.serializers import (
    CheckoutSessionInputSerializer,
    CheckoutSessionSerializer,
    DirectCheckoutInputSerializer,
    OrderLinkStatusSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
)
from orders.services import (
    FreightChoice,
    get_order_status_for_link,
    issue_checkout_session,
    list_orders,
    place_order_from_cart,
    transition_order,
)
from users.permissions import IsCustomer, IsStaff


# ---------------- THROTTLES (TARGETED) ----------------
class CheckoutWriteThrottle(UserRateThrottle):
    """
    Order placement / payment-link creation.
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['checkout_write'].
    """

    scope = "checkout_write"


class OrderPollThrottle(UserRateThrottle):
    """
    Storefront polls link status after the gateway redirect.
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['order_poll'].
    """

    scope = "order_poll"


def _freight_from(validated: dict | None) -> FreightChoice | None:
    if not validated:
        return None
    return FreightChoice.from_input(
        name=validated["name"],
        price=validated["price"],
        lead_days=validated["lead_days"],
    )


# ---------------- DIRECT CHECKOUT + LISTING ----------------
class OrderListCreateView(generics.GenericAPIView):
    permission_classes = [IsCustomer]
    serializer_class = OrderSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_queryset(self):
        return list_orders(self.request.user)

    def get_throttles(self):
        if self.request.method == "POST":
            return [CheckoutWriteThrottle()]
        return super().get_throttles()

    @extend_schema(
        responses={200: OrderSerializer(many=True)},
        description="List the authenticated customer's orders (newest first)",
    )
    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(OrderSerializer(page, many=True).data)
        return Response(OrderSerializer(queryset, many=True).data)

    @extend_schema(
        request=DirectCheckoutInputSerializer,
        responses={201: OrderSerializer},
        description="Place an order from the cart now (status pending_payment).",
        examples=[
            OpenApiExample(
                "Pix with freight",
                value={
                    "payment_method": "pix",
                    "freight": {"name": "Correios SEDEX", "price": "25.90", "lead_days": 3},
                },
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = DirectCheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = place_order_from_cart(
                request.user,
                payment_method=data["payment_method"],
                delivery_address=data.get("delivery_address"),
                freight=_freight_from(data.get("freight")),
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


# ---------------- PAYMENT LINK ----------------
class CheckoutSessionView(APIView):
    permission_classes = [IsCustomer]
    throttle_classes = [CheckoutWriteThrottle]
    serializer_class = CheckoutSessionSerializer

    @extend_schema(
        request=CheckoutSessionInputSerializer,
        responses={201: CheckoutSessionSerializer},
        description="Create a hosted payment link for the current cart.",
    )
    def post(self, request):
        serializer = CheckoutSessionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            session = issue_checkout_session(
                request.user,
                freight=_freight_from(data["freight"]),
                delivery_address=data.get("delivery_address"),
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(
            CheckoutSessionSerializer(session).data, status=status.HTTP_201_CREATED
        )


class OrderLinkStatusView(APIView):
    permission_classes = [IsCustomer]
    throttle_classes = [OrderPollThrottle]
    serializer_class = OrderLinkStatusSerializer

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="gateway",
                type=bool,
                required=False,
                description="Also ask the gateway for the link's charge status",
            )
        ],
        responses={200: OrderLinkStatusSerializer},
        description="Order status for a payment link issued to the caller.",
    )
    def get(self, request, link_id):
        include_gateway = (request.query_params.get("gateway") or "").lower() in {"1", "true", "yes"}
        try:
            result = get_order_status_for_link(
                request.user, link_id, include_gateway_status=include_gateway
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(OrderLinkStatusSerializer(result).data)


# ---------------- STAFF: LIFECYCLE ----------------
class OrderStatusTransitionView(APIView):
    permission_classes = [IsStaff]
    serializer_class = OrderSerializer

    @extend_schema(
        request=OrderStatusUpdateSerializer,
        responses={200: OrderSerializer},
        description="Move an order along its fulfilment lifecycle.",
    )
    def patch(self, request, order_id):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = transition_order(order_id, serializer.validated_data["status"])
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)
