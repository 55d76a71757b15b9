# orders/services/direct_checkout.py

"""
DIRECT CHECKOUT ("place order now")

Purpose:
- Convert the customer's cart into a PENDING_PAYMENT order synchronously.

Hard rules:
- All-or-nothing: order, lines and stock decrements commit together.
- Cart is cleared only after the commit succeeds.
- Confirmation email goes out on commit, never inside the transaction.
"""

from __future__ import annotations

import logging

from django.db import transaction

from cart.models import Cart, CartLine
from cart.services import clear_cart
from common.exceptions import EmptyCartError, ValidationError
from orders.models import Order
from orders.services.materialize import (
    FreightChoice,
    MaterializeRequest,
    PurchaseLine,
    materialize_order,
)
from orders.services.notifications import schedule_order_confirmation

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("credit_card", "pix", "boleto")


def _normalize_payment_method(method: str | None) -> str:
    m = (method or "").strip().lower()
    if not m:
        raise ValidationError("payment_method is required")
    if m not in PAYMENT_METHODS:
        raise ValidationError(f"Unsupported payment_method: {m}")
    return m


def place_order_from_cart(
    customer,
    *,
    payment_method: str,
    delivery_address: dict | None = None,
    freight: FreightChoice | None = None,
) -> Order:
    method = _normalize_payment_method(payment_method)
    address = delivery_address or customer.delivery_address()

    with transaction.atomic():
        # Serialize double-clicks from the same customer.
        Cart.objects.select_for_update().filter(customer=customer).first()

        cart_lines = list(
            CartLine.objects.filter(cart__customer=customer).order_by("product_id")
        )
        if not cart_lines:
            raise EmptyCartError("Cart is empty")

        order = materialize_order(
            MaterializeRequest(
                customer=customer,
                lines=[
                    PurchaseLine(product_id=line.product_id, quantity=line.quantity)
                    for line in cart_lines
                ],
                status=Order.STATUS_PENDING_PAYMENT,
                payment_method=method,
                freight=freight or FreightChoice.empty(),
                delivery_address=address,
            )
        )

        schedule_order_confirmation(order.id)

    clear_cart(customer)

    logger.info(
        "direct checkout completed",
        extra={"order_id": str(order.id), "customer_id": str(customer.id)},
    )
    return order
