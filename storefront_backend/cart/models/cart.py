"""
PATH: cart/models/cart.py

CART MODEL

Purpose:
- Per-customer shopping cart (temporary, mutable).
- Created lazily on the first write; reads of a missing cart are "empty".
- updated_at is the last-modified marker; every mutation touches it.

Rules:
- Exactly one cart per customer (one-to-one).
- Cleared as a whole when an order is materialized from it.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Sum

User = settings.AUTH_USER_MODEL


class Cart(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="cart",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def touch(self):
        self.save(update_fields=["updated_at"])

    @property
    def item_count(self) -> int:
        total = self.lines.aggregate(total=Sum("quantity")).get("total")
        return int(total or 0)

    @property
    def snapshot_subtotal(self) -> Decimal:
        total = (
            self.lines.annotate(line_total=F("quantity") * F("unit_price"))
            .aggregate(total=Sum("line_total"))
            .get("total")
        )
        return total or Decimal("0.00")

    def __str__(self):
        return f"Cart {self.id} | {self.customer}"
