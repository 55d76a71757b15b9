# shipping/services/quote.py

"""
FREIGHT QUOTE

Builds the parcel list from the customer's cart and asks the carrier-rate
provider for options. Every product needs weight and all three dimensions.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal, InvalidOperation

from django.conf import settings

from cart.services import get_cart_lines
from common.exceptions import EmptyCartError, ExternalServiceError, ValidationError
from shipping.services.melhor_envio import MelhorEnvioClient

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def _postal_code(raw) -> str:
    digits = _NON_DIGITS.sub("", str(raw or ""))
    if len(digits) != 8:
        raise ValidationError("Postal code must have 8 digits")
    return digits


def _shipping_settings() -> dict:
    return getattr(settings, "SHIPPING", {}) or {}


def build_parcels(lines, *, insured: bool) -> list[dict]:
    parcels = []
    for line in lines:
        product = line.product
        if not product.has_shipping_dimensions:
            raise ValidationError(
                f'Product "{product.name}" has no complete weight/dimension data.'
            )
        parcels.append(
            {
                "id": str(product.id),
                "width": math.ceil(product.width_cm),
                "height": math.ceil(product.height_cm),
                "length": math.ceil(product.length_cm),
                "weight": float(product.weight_kg),
                "insurance_value": float(product.unit_price) if insured else 0,
                "quantity": int(line.quantity),
            }
        )
    return parcels


def _option(entry: dict) -> dict | None:
    raw_price = entry.get("custom_price") or entry.get("price")
    try:
        price = Decimal(str(raw_price)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        return None

    lead_days = entry.get("custom_delivery_time") or entry.get("delivery_time") or 0
    return {
        "carrier": (entry.get("company") or {}).get("name") or "",
        "service": str(entry.get("name") or ""),
        "service_id": entry.get("id"),
        "price": price,
        "lead_days": int(lead_days),
    }


def quote_freight(
    customer,
    destination_postal_code,
    *,
    insured: bool = False,
    client: MelhorEnvioClient | None = None,
) -> list[dict]:
    cfg = _shipping_settings()
    origin = str(cfg.get("ORIGIN_POSTAL_CODE") or "")
    if not origin:
        raise ExternalServiceError("Shipping origin postal code is not configured.")

    destination = _postal_code(destination_postal_code)

    lines = get_cart_lines(customer)
    if not lines:
        raise EmptyCartError("Cart is empty")

    payload = {
        "from": {"postal_code": _postal_code(origin)},
        "to": {"postal_code": destination},
        "products": build_parcels(lines, insured=insured),
    }

    client = client or MelhorEnvioClient.from_settings()
    entries = client.calculate(payload)

    carriers = set(cfg.get("CARRIERS") or [])
    options = []
    for entry in entries:
        if entry.get("error"):
            continue
        option = _option(entry)
        if option is None:
            continue
        if carriers and option["carrier"] not in carriers:
            continue
        options.append(option)

    options.sort(key=lambda o: (o["price"], o["lead_days"]))

    logger.info(
        "freight quoted",
        extra={
            "customer_id": str(customer.id),
            "destination": destination,
            "options": len(options),
        },
    )
    return options
