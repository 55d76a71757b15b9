# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """
    Durable customer order.

    Two ways in:
    - Direct checkout creates it as PENDING_PAYMENT
    - Payment-link reconciliation creates it as PAID, carrying the link id

    Key rule:
    - checkout_link_id is the idempotency key of the payment-link path:
      at most one Order per link id (unique; NULL for direct checkout)
    """

    STATUS_PENDING_PAYMENT = "pending_payment"
    STATUS_PAID = "paid"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELED = "canceled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_PENDING_PAYMENT, "Pending Payment"),
        (STATUS_PAID, "Paid"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELED, "Canceled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    status = models.CharField(
        max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING_PAYMENT
    )
    payment_method = models.CharField(max_length=32, blank=True, default="")

    # Freight snapshot
    freight_name = models.CharField(max_length=120, blank=True, default="")
    freight_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    freight_lead_days = models.PositiveIntegerField(default=0)

    delivery_address = models.JSONField(default=dict, blank=True)

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    checkout_link_id = models.CharField(
        max_length=64, unique=True, null=True, blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="order_status_idx"),
            models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.order_no:
            stamp = timezone.localdate().strftime("%Y%m%d")
            self.order_no = f"SF{stamp}-{uuid.uuid4().hex[:8].upper()}"

        if self.status == self.STATUS_PAID and not self.paid_at:
            self.paid_at = timezone.now()

        super().save(*args, **kwargs)

    def __str__(self):
        return f"Order {self.order_no} ({self.status})"


class OrderLine(models.Model):
    """
    Purchased line. unit_price is the price at purchase time and stays
    authoritative regardless of later catalog changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="lines")
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.order_id} | {self.product_id} x {self.quantity}"
