# shipping/serializers.py

from rest_framework import serializers


class FreightQuoteInputSerializer(serializers.Serializer):
    postal_code = serializers.RegexField(
        r"^\d{5}-?\d{3}$",
        error_messages={"invalid": "Use the 00000-000 postal code format."},
    )
    insured = serializers.BooleanField(required=False, default=False)


class FreightOptionSerializer(serializers.Serializer):
    carrier = serializers.CharField()
    service = serializers.CharField()
    service_id = serializers.IntegerField(allow_null=True, required=False)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    lead_days = serializers.IntegerField()
