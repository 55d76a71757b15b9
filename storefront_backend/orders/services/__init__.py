from .checkout_session import issue_checkout_session
from .direct_checkout import place_order_from_cart
from .materialize import FreightChoice, MaterializeRequest, PurchaseLine, materialize_order
from .notifications import schedule_order_confirmation, send_order_confirmation
from .order_lifecycle import transition_order
from .order_queries import get_order_status_for_link, list_orders
from .webhook_reconciler import ReconcileResult, reconcile_payment_event

__all__ = [
    "FreightChoice",
    "MaterializeRequest",
    "PurchaseLine",
    "ReconcileResult",
    "get_order_status_for_link",
    "issue_checkout_session",
    "list_orders",
    "materialize_order",
    "place_order_from_cart",
    "reconcile_payment_event",
    "schedule_order_confirmation",
    "send_order_confirmation",
    "transition_order",
]
