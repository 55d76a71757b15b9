from .api import AddCartItemView, CartItemView, CartView

__all__ = [
    "AddCartItemView",
    "CartItemView",
    "CartView",
]
