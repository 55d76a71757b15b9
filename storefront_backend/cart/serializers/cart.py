"""
PATH: cart/serializers/cart.py

CART SERIALIZER

Renders the payload returned by cart.services.get_cart():
    {"cart_id", "updated_at", "lines"}
Totals are computed server-side from live product prices.
"""

from decimal import Decimal

from rest_framework import serializers

from .cart_line import CartLineSerializer


class CartSerializer(serializers.Serializer):
    cart_id = serializers.UUIDField(read_only=True, allow_null=True)
    updated_at = serializers.DateTimeField(read_only=True, allow_null=True)
    items = CartLineSerializer(source="lines", many=True, read_only=True)
    item_count = serializers.SerializerMethodField()
    subtotal_amount = serializers.SerializerMethodField()

    def get_item_count(self, obj) -> int:
        return sum(int(line.quantity or 0) for line in obj["lines"])

    def get_subtotal_amount(self, obj) -> str:
        subtotal = sum(
            (line.live_line_total for line in obj["lines"]), Decimal("0.00")
        )
        # String avoids float serialization issues
        return f"{subtotal:.2f}"


class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class UpdateCartItemInputSerializer(serializers.Serializer):
    """quantity <= 0 removes the line."""

    quantity = serializers.IntegerField()
