from .cart_service import (
    add_item,
    clear_cart,
    get_cart,
    get_cart_lines,
    remove_item,
    update_item,
)

__all__ = [
    "add_item",
    "clear_cart",
    "get_cart",
    "get_cart_lines",
    "remove_item",
    "update_item",
]
