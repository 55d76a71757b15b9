# orders/tests/helpers.py

from __future__ import annotations

from common.exceptions import ExternalServiceError


class FakeGateway:
    """Stands in for PagarmeClient; records every payload it receives."""

    def __init__(self, *, link_id="pl_test_001", link_status="pending", fail=False):
        self.link_id = link_id
        self.link_status = link_status
        self.fail = fail
        self.created = []
        self.fetched = []

    def create_payment_link(self, payload):
        self.created.append(payload)
        if self.fail:
            raise ExternalServiceError("Pagar.me URLError: timed out")
        return {
            "id": self.link_id,
            "url": f"https://payment-link.pagar.me/{self.link_id}",
            "raw": {},
        }

    def fetch_payment_link(self, link_id):
        self.fetched.append(link_id)
        if self.fail:
            raise ExternalServiceError("Pagar.me HTTPError: 503")
        return {"status": self.link_status, "payment_method": None, "amount": 0, "paid": False}


def paid_event(link_id, items, *, customer_id=None, amount=None, event_type="order.paid",
               status="paid", installments=3):
    """
    Pagar.me-shaped order event.

    items: [(product_id, quantity, line_total_cents), ...]
    """
    data_items = [
        {"code": str(pid), "description": f"item {idx}", "amount": cents, "quantity": qty}
        for idx, (pid, qty, cents) in enumerate(items)
    ]
    metadata = {}
    if customer_id is not None:
        metadata["customer_id"] = str(customer_id)

    return {
        "id": "hook_abc",
        "type": event_type,
        "data": {
            "id": "or_xyz",
            "code": link_id,
            "status": status,
            "amount": amount if amount is not None else sum(c for _, _, c in items),
            "items": data_items,
            "charges": [
                {
                    "id": "ch_123",
                    "payment_method": "credit_card",
                    "last_transaction": {"installments": installments},
                }
            ],
            "metadata": metadata,
        },
    }
