from .inventory import decrement_stock, get_sellable_product, lock_products

__all__ = [
    "decrement_stock",
    "get_sellable_product",
    "lock_products",
]
