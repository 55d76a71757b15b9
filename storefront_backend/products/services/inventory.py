# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
STOCK CORE SERVICES

Purpose:
- Lock product rows in a stable order (product id) so concurrent checkouts
  touching overlapping products cannot deadlock.
- Verify sufficiency and decrement stock on the locked row.

Rules:
- Quantities are integer units (Product.stock is PositiveIntegerField).
- Every function here MUST run inside transaction.atomic(); the locks are
  released at commit/rollback.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from common.exceptions import InsufficientStockError, NotFoundError
from products.models import Product

logger = logging.getLogger(__name__)


def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValueError("quantity must be a whole integer unit")


def lock_products(product_ids) -> dict:
    """
    SELECT ... FOR UPDATE the given products, ordered by id.

    Returns {product_id: Product}. Missing ids are simply absent; callers
    decide whether that is an error.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_products() must run inside transaction.atomic()")

    locked = Product.objects.select_for_update().filter(id__in=set(product_ids)).order_by("id")
    return {p.id: p for p in locked}


def decrement_stock(*, product: Product, quantity) -> Product:
    """
    Verify and decrement stock on an already-locked product row.

    Raises InsufficientStockError naming the product when the request
    exceeds what is available.
    """
    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise ValueError("quantity must be greater than zero")

    available = int(product.stock or 0)
    if qty > available:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}. "
            f"Requested {qty}, available {available}.",
            product_id=product.id,
            requested=qty,
            available=available,
        )

    Product.objects.filter(id=product.id).update(stock=F("stock") - qty)
    product.stock = available - qty

    logger.debug(
        "stock decremented",
        extra={"product_id": str(product.id), "quantity": qty, "remaining": product.stock},
    )
    return product


def get_sellable_product(product_id) -> Product:
    """Active product or NotFoundError."""
    try:
        return Product.objects.get(id=product_id, is_active=True)
    except (Product.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Product not found or unavailable.")
