# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Available stock lives on the product row itself
    - It is the single resource contended by concurrent checkouts
    - It is only decremented by products.services.inventory, under a row lock

    Shipping weight and dimensions feed freight quotes; a product without
    them cannot be quoted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    # Current selling price (snapshot at purchase time lives on OrderLine)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    stock = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    # Shipping attributes
    weight_kg = models.DecimalField(
        max_digits=8, decimal_places=3, null=True, blank=True
    )
    height_cm = models.PositiveIntegerField(null=True, blank=True)
    width_cm = models.PositiveIntegerField(null=True, blank=True)
    length_cm = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sku"], name="product_sku_idx"),
            models.Index(fields=["name"], name="product_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise ValidationError("Unit price must be greater than zero")

    @property
    def has_shipping_dimensions(self) -> bool:
        return all(
            value is not None
            for value in (self.weight_kg, self.height_cm, self.width_cm, self.length_cm)
        )
