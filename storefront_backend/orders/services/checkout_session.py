# orders/services/checkout_session.py

"""
CHECKOUT-SESSION ISSUER (PAYMENT LINK PATH)

Flow:
1) Validate the freight choice and read the cart (live prices)
2) Compute subtotal/total in centavos + the installment schedule
3) Ask the gateway for a hosted payment link (OUTSIDE any DB transaction)
4) Persist the CheckoutSession keyed by the returned link id

Nothing is written when the gateway fails. Stock is not touched here; it is
decremented when the paid event is reconciled.

Each gateway item carries the internal product id as its `code` and the
link metadata carries the internal customer id, so the webhook never has to
guess who bought what.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings

from cart.services import get_cart_lines
from common.exceptions import EmptyCartError, ValidationError
from orders.models import CheckoutSession
from orders.services.installments import MAX_INSTALLMENTS, build_installments
from orders.services.materialize import FreightChoice
from payments.services.pagarme import PagarmeClient, to_cents

logger = logging.getLogger(__name__)

ACCEPTED_PAYMENT_METHODS = ["credit_card", "pix", "boleto"]
PIX_EXPIRES_IN_SECONDS = 3600
BOLETO_DUE_IN_DAYS = 3


def _max_installments() -> int:
    cfg = (getattr(settings, "PAYMENTS", {}) or {}).get("PAGARME") or {}
    return int(cfg.get("MAX_INSTALLMENTS") or MAX_INSTALLMENTS)


def _document_digits(raw) -> str:
    return "".join(ch for ch in str(raw or "") if ch.isdigit())[:14]


def _gateway_customer(customer) -> dict:
    document = _document_digits(customer.document)
    if len(document) not in (11, 14):
        raise ValidationError(
            "A valid CPF or CNPJ is required on your profile before paying."
        )
    is_company = len(document) > 11
    return {
        "name": customer.full_name,
        "email": customer.email,
        "type": "company" if is_company else "individual",
        "document": document,
        "document_type": "cnpj" if is_company else "cpf",
    }


def price_cart_lines(lines) -> tuple[list[dict], int]:
    """
    Gateway items + subtotal in centavos, priced from the live product row.

    Each line total is rounded half-up to centavos on its own.
    """
    items = []
    subtotal = 0
    for line in lines:
        amount = to_cents(Decimal(line.product.unit_price) * Decimal(int(line.quantity)))
        subtotal += amount
        items.append(
            {
                "code": str(line.product_id),
                "name": line.product.name,
                "amount": amount,
                "default_quantity": int(line.quantity),
            }
        )
    return items, subtotal


def build_payment_link_payload(
    *,
    customer,
    items: list[dict],
    subtotal_cents: int,
    freight: FreightChoice,
    freight_cents: int,
    total_cents: int,
    installments: list[dict],
) -> dict:
    return {
        "type": "order",
        "name": f"Pedido Storefront (cliente {customer.id})",
        "is_building": False,
        "payment_settings": {
            "accepted_payment_methods": ACCEPTED_PAYMENT_METHODS,
            "credit_card_settings": {
                "operation_type": "auth_and_capture",
                "installments": installments,
            },
            "pix_settings": {"expires_in": PIX_EXPIRES_IN_SECONDS},
            "boleto_settings": {"due_in": BOLETO_DUE_IN_DAYS},
        },
        "cart_settings": {
            "items": items,
            "items_total_cost": subtotal_cents,
            "total_cost": total_cents,
            "shipping_cost": freight_cents,
            "shipping_total_cost": freight_cents,
        },
        "customer_settings": {
            "customer_editable": False,
            "customer": _gateway_customer(customer),
        },
        "metadata": {
            "customer_id": str(customer.id),
            "freight_name": freight.name,
            "freight_price": str(freight.price),
            "freight_lead_days": str(freight.lead_days),
        },
    }


def issue_checkout_session(
    customer,
    *,
    freight: FreightChoice,
    delivery_address: dict | None = None,
    gateway: PagarmeClient | None = None,
) -> CheckoutSession:
    if not isinstance(freight, FreightChoice) or not freight.name:
        raise ValidationError("A freight choice is required")

    lines = get_cart_lines(customer)
    if not lines:
        raise EmptyCartError("Cart is empty")

    items, subtotal_cents = price_cart_lines(lines)
    freight_cents = to_cents(freight.price)
    total_cents = subtotal_cents + freight_cents
    installments = build_installments(total_cents, _max_installments())

    payload = build_payment_link_payload(
        customer=customer,
        items=items,
        subtotal_cents=subtotal_cents,
        freight=freight,
        freight_cents=freight_cents,
        total_cents=total_cents,
        installments=installments,
    )

    gateway = gateway or PagarmeClient.from_settings()
    link = gateway.create_payment_link(payload)

    session = CheckoutSession.objects.create(
        link_id=link["id"],
        customer=customer,
        freight_name=freight.name,
        freight_price=freight.price,
        freight_lead_days=freight.lead_days,
        delivery_address=delivery_address or customer.delivery_address(),
        subtotal_cents=subtotal_cents,
        total_cents=total_cents,
        installments=installments,
        payment_url=link["url"],
    )

    logger.info(
        "checkout session issued",
        extra={
            "link_id": session.link_id,
            "customer_id": str(customer.id),
            "total_cents": total_cents,
        },
    )
    return session
