from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=200)
    number = serializers.CharField(max_length=20)
    complement = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )
    district = serializers.CharField(max_length=100)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(min_length=2, max_length=2)
    postal_code = serializers.RegexField(r"^\d{5}-?\d{3}$")


# ---------------- PROFILE OUTPUT ----------------
class ProfileSerializer(serializers.ModelSerializer):
    """
    Safe customer representation for the storefront.
    """

    delivery_address = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "document",
            "phone",
            "delivery_address",
        ]

    def get_delivery_address(self, obj):
        return obj.delivery_address()


# ---------------- PROFILE UPDATE (INPUT ONLY) ----------------
class ProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100, required=False)
    last_name = serializers.CharField(max_length=100, required=False)
    document = serializers.RegexField(r"^(\d{11}|\d{14})$", required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    delivery_address = DeliveryAddressSerializer(required=False)

    def update(self, instance, validated_data):
        address = validated_data.pop("delivery_address", None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if address is not None:
            for key, value in address.items():
                setattr(instance, f"address_{key}", value)
        instance.save()
        return instance
