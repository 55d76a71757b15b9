# orders/services/materialize.py

"""
ORDER MATERIALIZER (SHARED BY BOTH CHECKOUT PATHS)

Purpose:
- Turn a list of purchase lines into Order + OrderLines while decrementing
  stock exactly once per purchased unit.

Hard rules:
- MUST run inside transaction.atomic() (the caller owns the transaction).
- Product rows are locked in product-id order before anything is checked,
  so concurrent checkouts over overlapping products serialize instead of
  deadlocking.
- Any shortfall raises InsufficientStockError naming the product; the
  caller's transaction rolls everything back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from common.exceptions import NotFoundError, ValidationError
from orders.models import Order, OrderLine
from products.services.inventory import decrement_stock, lock_products

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FreightChoice:
    name: str = ""
    price: Decimal = Decimal("0.00")
    lead_days: int = 0

    @classmethod
    def empty(cls) -> "FreightChoice":
        return cls()

    @classmethod
    def from_input(cls, *, name, price, lead_days) -> "FreightChoice":
        """Validated freight choice supplied by a customer."""
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("freight name is required")

        try:
            clean_price = _money(price)
        except ArithmeticError:
            raise ValidationError("freight price must be a valid amount")
        if clean_price < Decimal("0.00"):
            raise ValidationError("freight price cannot be negative")

        try:
            clean_days = int(lead_days)
        except (TypeError, ValueError):
            raise ValidationError("freight lead time must be a whole number of days")
        if clean_days < 0:
            raise ValidationError("freight lead time cannot be negative")

        return cls(name=clean_name, price=clean_price, lead_days=clean_days)


@dataclass(frozen=True)
class PurchaseLine:
    """
    One line to materialize.

    unit_price=None prices the line from the locked product row.
    line_total=None means unit_price x quantity.
    """

    product_id: object
    quantity: int
    unit_price: Decimal | None = None
    line_total: Decimal | None = None


@dataclass
class MaterializeRequest:
    customer: object
    lines: list
    status: str
    payment_method: str = ""
    freight: FreightChoice = field(default_factory=FreightChoice.empty)
    delivery_address: dict = field(default_factory=dict)
    checkout_link_id: str | None = None
    require_active_products: bool = True


def _product_key(line) -> uuid.UUID:
    try:
        return uuid.UUID(str(line.product_id))
    except ValueError:
        raise NotFoundError(f"Product {line.product_id} does not exist.")


def materialize_order(request: MaterializeRequest) -> Order:
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("materialize_order() must run inside transaction.atomic()")

    if not request.lines:
        raise ValidationError("Cannot create an order without lines")

    keys = [_product_key(line) for line in request.lines]
    locked = lock_products(keys)

    for line, key in zip(request.lines, keys):
        product = locked.get(key)
        if product is None:
            raise NotFoundError(f"Product {line.product_id} does not exist.")
        if request.require_active_products and not product.is_active:
            raise NotFoundError(f"{product.name} is no longer available.")

    order = Order.objects.create(
        customer=request.customer,
        status=request.status,
        payment_method=request.payment_method or "",
        freight_name=request.freight.name,
        freight_price=_money(request.freight.price),
        freight_lead_days=int(request.freight.lead_days or 0),
        delivery_address=request.delivery_address or {},
        checkout_link_id=request.checkout_link_id,
    )

    subtotal = Decimal("0.00")

    # Stable lock order already held; walk lines in the same order
    for line, key in sorted(zip(request.lines, keys), key=lambda pair: str(pair[1])):
        product = locked[key]

        decrement_stock(product=product, quantity=line.quantity)

        unit_price = _money(product.unit_price if line.unit_price is None else line.unit_price)
        line_total = (
            _money(unit_price * Decimal(int(line.quantity)))
            if line.line_total is None
            else _money(line.line_total)
        )

        OrderLine.objects.create(
            order=order,
            product=product,
            quantity=int(line.quantity),
            unit_price=unit_price,
            line_total=line_total,
        )
        subtotal += line_total

    order.subtotal_amount = _money(subtotal)
    order.total_amount = _money(subtotal + order.freight_price)
    order.save(update_fields=["subtotal_amount", "total_amount", "updated_at"])

    logger.info(
        "order materialized",
        extra={
            "order_id": str(order.id),
            "order_status": order.status,
            "link_id": request.checkout_link_id,
            "line_count": len(request.lines),
        },
    )
    return order
