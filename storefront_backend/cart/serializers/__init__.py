from .cart import AddCartItemInputSerializer, CartSerializer, UpdateCartItemInputSerializer
from .cart_line import CartLineSerializer

__all__ = [
    "AddCartItemInputSerializer",
    "CartLineSerializer",
    "CartSerializer",
    "UpdateCartItemInputSerializer",
]
