# cart/services/cart_service.py

"""
CART SERVICE

Purpose:
- Per-customer cart reads and mutations (add / update / remove / clear).
- The only writer of Cart/CartLine apart from order materialization,
  which calls clear_cart().

Hard rules:
- Quantities are integer units; a line never holds quantity <= 0.
- A mutation never leaves a line above the product's current stock.
- The cart row is locked (SELECT ... FOR UPDATE) for the duration of a
  mutation, so two concurrent adds from the same customer cannot both pass
  the merged-quantity stock check.
- Stock is NOT reserved by the cart; checkout re-verifies under product locks.
"""

from __future__ import annotations

import logging

from django.db import transaction

from cart.models import Cart, CartLine
from common.exceptions import InsufficientStockError, NotFoundError, ValidationError
from products.services.inventory import get_sellable_product

logger = logging.getLogger(__name__)


# ============================================================
# HELPERS
# ============================================================

def _to_int_qty(value, *, field_name="quantity") -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")


def _lock_cart(customer, *, create: bool) -> Cart | None:
    """
    Return the customer's cart locked for update.

    create=True lazily creates the row (first write).
    """
    if create:
        Cart.objects.get_or_create(customer=customer)
    return Cart.objects.select_for_update().filter(customer=customer).first()


def _ensure_stock(product, quantity: int) -> None:
    available = int(product.stock or 0)
    if quantity > available:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}. "
            f"Requested {quantity}, available {available}.",
            product_id=product.id,
            requested=quantity,
            available=available,
        )


# ============================================================
# READS
# ============================================================

def get_cart_lines(customer) -> list[CartLine]:
    """
    Cart lines joined with live product detail.

    A customer without a cart row simply has no lines.
    """
    return list(
        CartLine.objects.filter(cart__customer=customer)
        .select_related("product")
        .order_by("created_at")
    )


def get_cart(customer) -> dict:
    lines = get_cart_lines(customer)
    cart = Cart.objects.filter(customer=customer).only("id", "updated_at").first()
    return {
        "cart_id": getattr(cart, "id", None),
        "updated_at": getattr(cart, "updated_at", None),
        "lines": lines,
    }


# ============================================================
# MUTATIONS
# ============================================================

@transaction.atomic
def add_item(customer, product_id, quantity) -> CartLine:
    qty = _to_int_qty(quantity)
    if qty < 1:
        raise ValidationError("quantity must be at least 1")

    product = get_sellable_product(product_id)
    cart = _lock_cart(customer, create=True)

    line = CartLine.objects.filter(cart=cart, product=product).first()

    if line is None:
        _ensure_stock(product, qty)
        line = CartLine.objects.create(
            cart=cart,
            product=product,
            quantity=qty,
            unit_price=product.unit_price,
        )
    else:
        merged = int(line.quantity) + qty
        _ensure_stock(product, merged)
        line.quantity = merged
        line.unit_price = product.unit_price
        line.save(update_fields=["quantity", "unit_price"])

    cart.touch()

    logger.info(
        "cart item added",
        extra={"cart_id": str(cart.id), "product_id": str(product.id), "quantity": line.quantity},
    )
    return line


@transaction.atomic
def update_item(customer, product_id, quantity) -> CartLine | None:
    """
    Overwrite a line's quantity.

    quantity <= 0 removes the line (no-op when it is already absent) and
    returns None.
    """
    qty = _to_int_qty(quantity)
    cart = _lock_cart(customer, create=False)

    if qty <= 0:
        if cart is not None:
            deleted, _ = CartLine.objects.filter(cart=cart, product_id=product_id).delete()
            if deleted:
                cart.touch()
                logger.info(
                    "cart item removed by zero quantity",
                    extra={"cart_id": str(cart.id), "product_id": str(product_id)},
                )
        return None

    line = None
    if cart is not None:
        line = (
            CartLine.objects.select_related("product")
            .filter(cart=cart, product_id=product_id)
            .first()
        )
    if line is None:
        raise NotFoundError("Item is not in the cart.")

    _ensure_stock(line.product, qty)

    line.quantity = qty
    line.save(update_fields=["quantity"])
    cart.touch()

    logger.info(
        "cart item updated",
        extra={"cart_id": str(cart.id), "product_id": str(product_id), "quantity": qty},
    )
    return line


@transaction.atomic
def remove_item(customer, product_id) -> None:
    cart = _lock_cart(customer, create=False)

    deleted = 0
    if cart is not None:
        deleted, _ = CartLine.objects.filter(cart=cart, product_id=product_id).delete()
    if not deleted:
        raise NotFoundError("Item is not in the cart.")

    cart.touch()
    logger.info(
        "cart item removed",
        extra={"cart_id": str(cart.id), "product_id": str(product_id)},
    )


@transaction.atomic
def clear_cart(customer) -> int:
    """
    Delete every line of the customer's cart.

    Returns the number of lines removed (0 when there was no cart).
    """
    cart = _lock_cart(customer, create=False)
    if cart is None:
        return 0

    deleted, _ = CartLine.objects.filter(cart=cart).delete()
    cart.touch()

    logger.info("cart cleared", extra={"cart_id": str(cart.id), "lines": deleted})
    return deleted
