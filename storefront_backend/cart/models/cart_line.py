"""
PATH: cart/models/cart_line.py

CART LINE MODEL

Purpose:
- One product per cart with a positive integer quantity.
- unit_price is a display-only snapshot taken when the line is added;
  orders always price from the product row.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product

from .cart import Cart


class CartLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="cart_lines",
    )

    quantity = models.PositiveIntegerField(help_text="Must be greater than zero")

    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Snapshot price at time of adding to cart",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                name="unique_product_per_cart",
            )
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.clean()
        return super().save(*args, **kwargs)

    @property
    def live_line_total(self) -> Decimal:
        price = getattr(self.product, "unit_price", None) or Decimal("0.00")
        return price * Decimal(int(self.quantity or 0))

    def __str__(self):
        return f"{getattr(self.product, 'name', 'Product')} x {self.quantity}"
