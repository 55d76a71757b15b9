# cart/views/api.py

"""
CART API VIEWS

Purpose:
- Customer cart read + mutations (add / update / remove / clear)

Hard rules:
- Only the owning customer touches a cart; it is always resolved from
  request.user, never from the payload.
- Money is server-owned: prices come from the product row.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from cart import services
from cart.serializers import (
    AddCartItemInputSerializer,
    CartSerializer,
    UpdateCartItemInputSerializer,
)
from common.api import domain_error_response
from common.exceptions import StorefrontError
from users.permissions import IsCustomer


def _cart_response(customer, http_status=status.HTTP_200_OK):
    return Response(CartSerializer(services.get_cart(customer)).data, status=http_status)


class CartView(APIView):
    """
    GET: the customer's cart (empty when none exists yet).
    DELETE: empty the cart.
    """

    permission_classes = [IsCustomer]
    serializer_class = CartSerializer

    @extend_schema(
        responses={200: CartSerializer},
        description="Get the authenticated customer's cart",
    )
    def get(self, request):
        return _cart_response(request.user)

    @extend_schema(
        responses={200: CartSerializer},
        description="Remove every item from the cart",
    )
    def delete(self, request):
        services.clear_cart(request.user)
        return _cart_response(request.user)


class AddCartItemView(APIView):
    permission_classes = [IsCustomer]
    serializer_class = CartSerializer

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={201: CartSerializer},
        description="Add a product to the cart (merges with an existing line)",
    )
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            services.add_item(
                request.user,
                serializer.validated_data["product_id"],
                serializer.validated_data["quantity"],
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return _cart_response(request.user, status.HTTP_201_CREATED)


class CartItemView(APIView):
    """
    PUT: overwrite the quantity (quantity <= 0 removes, answering 204).
    DELETE: remove the line.
    """

    permission_classes = [IsCustomer]
    serializer_class = CartSerializer

    @extend_schema(
        request=UpdateCartItemInputSerializer,
        responses={200: CartSerializer, 204: None},
        description="Set the quantity of a cart item",
    )
    def put(self, request, product_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            line = services.update_item(
                request.user, product_id, serializer.validated_data["quantity"]
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        if line is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return _cart_response(request.user)

    @extend_schema(
        responses={200: CartSerializer},
        description="Remove a product from the cart",
    )
    def delete(self, request, product_id):
        try:
            services.remove_item(request.user, product_id)
        except StorefrontError as exc:
            return domain_error_response(exc)

        return _cart_response(request.user)
