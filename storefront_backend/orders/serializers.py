# orders/serializers.py

from rest_framework import serializers

from orders.models import CheckoutSession, Order, OrderLine
from users.serializers import DeliveryAddressSerializer


# ---------------- INPUT ----------------
class FreightInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    lead_days = serializers.IntegerField(min_value=0)


class DirectCheckoutInputSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=["credit_card", "pix", "boleto"])
    delivery_address = DeliveryAddressSerializer(required=False)
    freight = FreightInputSerializer(required=False)


class CheckoutSessionInputSerializer(serializers.Serializer):
    freight = FreightInputSerializer()
    delivery_address = DeliveryAddressSerializer(required=False)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


# ---------------- OUTPUT ----------------
class OrderLineSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderLine
        fields = ["product_id", "product_name", "quantity", "unit_price", "line_total"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "status",
            "payment_method",
            "freight_name",
            "freight_price",
            "freight_lead_days",
            "delivery_address",
            "subtotal_amount",
            "total_amount",
            "checkout_link_id",
            "lines",
            "created_at",
            "paid_at",
        ]
        read_only_fields = fields


class CheckoutSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CheckoutSession
        fields = [
            "link_id",
            "payment_url",
            "subtotal_cents",
            "total_cents",
            "installments",
            "freight_name",
            "freight_price",
            "freight_lead_days",
            "created_at",
        ]
        read_only_fields = fields


class OrderLinkStatusSerializer(serializers.Serializer):
    link_id = serializers.CharField()
    status = serializers.CharField()
    order_id = serializers.UUIDField(allow_null=True)
    order_no = serializers.CharField(allow_null=True)
    gateway_status = serializers.CharField(required=False)
