# orders/services/notifications.py

"""
PURCHASE CONFIRMATION TRIGGER

Fire-and-forget:
- schedule_order_confirmation() registers an on_commit hook and never raises
  into the checkout path.
- send_order_confirmation() composes a plain-text email; any failure is
  logged and swallowed.
- NOTIFICATIONS_ENABLED=False turns the whole thing off.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from orders.models import Order

logger = logging.getLogger(__name__)


def _enabled() -> bool:
    return bool(getattr(settings, "NOTIFICATIONS_ENABLED", True))


def _compose(order: Order) -> tuple[str, str]:
    customer = order.customer
    lines = [
        f"- {line.product.name} x {line.quantity}: R$ {line.line_total}"
        for line in order.lines.select_related("product")
    ]

    body = [
        f"Olá {customer.full_name},",
        "",
        f"Recebemos o seu pedido {order.order_no}.",
        f"Situação: {order.get_status_display()}",
        "",
        *lines,
    ]
    if order.freight_name:
        body.append(
            f"Frete ({order.freight_name}, {order.freight_lead_days} dias): R$ {order.freight_price}"
        )
    body += ["", f"Total: R$ {order.total_amount}"]

    subject = f"Pedido {order.order_no} confirmado"
    return subject, "\n".join(body)


def send_order_confirmation(order_id) -> bool:
    if not _enabled():
        return False

    try:
        order = Order.objects.select_related("customer").get(id=order_id)
        subject, message = _compose(order)
        send_mail(
            subject,
            message,
            settings.DEFAULT_FROM_EMAIL,
            [order.customer.email],
            fail_silently=False,
        )
    except Exception:
        logger.exception("order confirmation failed", extra={"order_id": str(order_id)})
        return False

    logger.info("order confirmation sent", extra={"order_id": str(order_id)})
    return True


def schedule_order_confirmation(order_id) -> None:
    if not _enabled():
        return

    try:
        transaction.on_commit(lambda: send_order_confirmation(order_id))
    except Exception:
        logger.exception(
            "could not schedule order confirmation", extra={"order_id": str(order_id)}
        )
