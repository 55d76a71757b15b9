"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions for orders once
they exist. Payment reconciliation creates PAID orders directly and does
not go through here.
"""

from __future__ import annotations

import logging

from django.db import transaction

from common.exceptions import InvalidTransitionError, NotFoundError
from orders.models import Order

logger = logging.getLogger(__name__)

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Order.STATUS_CANCELED,
    Order.STATUS_COMPLETED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING_PAYMENT: {Order.STATUS_PAID, Order.STATUS_CANCELED},
    Order.STATUS_PAID: {Order.STATUS_PROCESSING, Order.STATUS_CANCELED},
    Order.STATUS_PROCESSING: {Order.STATUS_SHIPPED, Order.STATUS_CANCELED},
    Order.STATUS_SHIPPED: {Order.STATUS_DELIVERED},
    Order.STATUS_DELIVERED: {Order.STATUS_COMPLETED},
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidTransitionError(
            f"Order {order.order_no} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )


@transaction.atomic
def transition_order(order_id, target_status: str) -> Order:
    order = Order.objects.select_for_update().filter(id=order_id).first()
    if order is None:
        raise NotFoundError("Order not found.")

    validate_transition(order=order, target_status=target_status)

    previous = order.status
    order.status = target_status
    order.save()

    logger.info(
        "order status changed",
        extra={"order_id": str(order.id), "from_status": previous, "to_status": target_status},
    )
    return order
