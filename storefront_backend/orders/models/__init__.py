from .checkout_session import CheckoutSession
from .order import Order, OrderLine
from .payment_transaction import PaymentTransaction

__all__ = [
    "CheckoutSession",
    "Order",
    "OrderLine",
    "PaymentTransaction",
]
