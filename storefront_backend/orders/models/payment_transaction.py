# orders/models/payment_transaction.py

from django.db import models


class PaymentTransaction(models.Model):
    """
    Gateway-confirmed payment for an order created from a payment link.

    gateway_link_id is unique: a second delivery of the same paid event can
    never record a second transaction.
    """

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payment_transaction",
    )

    gateway_transaction_id = models.CharField(max_length=100)
    status = models.CharField(max_length=32)
    payment_method = models.CharField(max_length=32, blank=True, default="")
    amount_cents = models.PositiveIntegerField()
    installments = models.PositiveSmallIntegerField(default=1)
    gateway_link_id = models.CharField(max_length=64, unique=True)

    # Raw event kept for audit
    payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.gateway_link_id} | {self.status} | {self.amount_cents}"
