# orders/services/order_queries.py

"""
ORDER READS

- list_orders(): the customer's orders, newest first
- get_order_status_for_link(): "what happened to my payment link?"
  polled by the storefront after the gateway redirect
"""

from __future__ import annotations

import logging

from common.exceptions import ExternalServiceError, NotFoundError
from orders.models import CheckoutSession, Order
from payments.services.pagarme import PagarmeClient

logger = logging.getLogger(__name__)

GATEWAY_STATUS_UNKNOWN = "unknown"


def list_orders(customer):
    return (
        Order.objects.filter(customer=customer)
        .prefetch_related("lines__product")
        .order_by("-created_at")
    )


def _gateway_hint(link_id: str, gateway: PagarmeClient | None) -> str:
    gateway = gateway or PagarmeClient.from_settings()
    try:
        return str(gateway.fetch_payment_link(link_id).get("status") or GATEWAY_STATUS_UNKNOWN)
    except ExternalServiceError:
        logger.warning("gateway status lookup failed", extra={"link_id": link_id})
        return GATEWAY_STATUS_UNKNOWN


def get_order_status_for_link(
    customer,
    link_id: str,
    *,
    include_gateway_status: bool = False,
    gateway: PagarmeClient | None = None,
) -> dict:
    """
    Order status for a payment link.

    Links issued to another customer are reported as not found.
    """
    ref = str(link_id or "").strip()

    order = Order.objects.filter(checkout_link_id=ref, customer=customer).first()
    if order is not None:
        return {
            "link_id": ref,
            "status": order.status,
            "order_id": order.id,
            "order_no": order.order_no,
        }

    if not CheckoutSession.objects.filter(link_id=ref, customer=customer).exists():
        raise NotFoundError("Payment link not found.")

    result = {
        "link_id": ref,
        "status": Order.STATUS_PENDING_PAYMENT,
        "order_id": None,
        "order_no": None,
    }
    if include_gateway_status:
        result["gateway_status"] = _gateway_hint(ref, gateway)
    return result
