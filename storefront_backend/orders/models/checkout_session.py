# orders/models/checkout_session.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class CheckoutSession(models.Model):
    """
    Checkout context saved when a payment link is issued.

    Keyed by the gateway's link id. The webhook reconciler reads it back to
    recover the freight choice and delivery address of a paid link.

    Rules:
    - Read-only after creation; never deleted
    - "Spent" once an Order carries the same checkout_link_id
    - Abandoned sessions stay inert (no expiry)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    link_id = models.CharField(max_length=64, unique=True)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="checkout_sessions",
    )

    freight_name = models.CharField(max_length=120)
    freight_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    freight_lead_days = models.PositiveIntegerField(default=0)

    delivery_address = models.JSONField(default=dict, blank=True)

    # Minor currency units (centavos)
    subtotal_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField(default=0)
    installments = models.JSONField(default=list, blank=True)

    payment_url = models.URLField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.link_id} | {self.customer} | {self.total_cents}"
