"""
PATH: cart/serializers/cart_line.py

CART LINE SERIALIZER

- unit_price is the add-time snapshot (display only).
- current_unit_price / line_total come from the live product row;
  that is what checkout will charge.
"""

from rest_framework import serializers

from cart.models import CartLine


class CartLineSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    sku = serializers.CharField(source="product.sku", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    current_unit_price = serializers.DecimalField(
        source="product.unit_price",
        max_digits=10,
        decimal_places=2,
        read_only=True,
    )
    available_stock = serializers.IntegerField(source="product.stock", read_only=True)
    line_total = serializers.DecimalField(
        source="live_line_total",
        max_digits=12,
        decimal_places=2,
        read_only=True,
    )

    class Meta:
        model = CartLine
        fields = [
            "id",
            "product_id",
            "sku",
            "product_name",
            "quantity",
            "unit_price",
            "current_unit_price",
            "available_stock",
            "line_total",
            "created_at",
        ]
        read_only_fields = fields
