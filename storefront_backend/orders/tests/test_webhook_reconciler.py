# orders/tests/test_webhook_reconciler.py

"""
WEBHOOK RECONCILIATION TESTS

Guarantees:
- At most one Order and one PaymentTransaction per payment link
- A redelivered event changes nothing (stock, cart, email)
- A line that does not resolve to a product fails the whole event
- Missing checkout context degrades to empty freight
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase

from cart.models import CartLine
from cart.services import add_item
from common.exceptions import DuplicateEventError, InternalError, ValidationError
from orders.models import Order, OrderLine, PaymentTransaction
from orders.services import FreightChoice, issue_checkout_session, reconcile_payment_event
from orders.services.webhook_reconciler import OUTCOME_IGNORED, OUTCOME_PROCESSED
from orders.tests.helpers import FakeGateway, paid_event
from products.models import Product

User = get_user_model()


class WebhookReconcilerBase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(
            email="bia@example.com",
            password="testpass123",
            first_name="Bia",
            document="12345678909",
            address_street="Rua XV",
            address_number="50",
            address_city="Curitiba",
            address_state="PR",
            address_postal_code="80020-000",
        )
        self.product = Product.objects.create(
            sku="JAQ-01", name="Jaqueta", unit_price=Decimal("100.00"), stock=5
        )
        self.freight = FreightChoice(name="Correios SEDEX", price=Decimal("15.00"), lead_days=3)

    def issue_link(self, link_id="pl_L", quantity=2):
        add_item(self.customer, self.product.id, quantity)
        return issue_checkout_session(
            self.customer, freight=self.freight, gateway=FakeGateway(link_id=link_id)
        )

    def event_for(self, link_id="pl_L", quantity=2, **kwargs):
        kwargs.setdefault("customer_id", self.customer.id)
        return paid_event(link_id, [(self.product.id, quantity, 10000 * quantity)], **kwargs)


class ReconcilePaidEventTests(WebhookReconcilerBase):
    def test_paid_event_materializes_order(self):
        self.issue_link()

        result = reconcile_payment_event(self.event_for())

        self.assertEqual(result.outcome, OUTCOME_PROCESSED)
        order = result.order
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(order.checkout_link_id, "pl_L")
        self.assertEqual(order.customer, self.customer)
        self.assertEqual(order.payment_method, "credit_card")
        self.assertEqual(order.freight_name, "Correios SEDEX")
        self.assertEqual(order.subtotal_amount, Decimal("200.00"))
        self.assertEqual(order.total_amount, Decimal("215.00"))
        self.assertIsNotNone(order.paid_at)
        self.assertEqual(order.delivery_address["city"], "Curitiba")

        line = OrderLine.objects.get(order=order)
        self.assertEqual(line.unit_price, Decimal("100.00"))
        self.assertEqual(line.line_total, Decimal("200.00"))

        txn = PaymentTransaction.objects.get(gateway_link_id="pl_L")
        self.assertEqual(txn.order, order)
        self.assertEqual(txn.amount_cents, 20000)
        self.assertEqual(txn.installments, 3)
        self.assertEqual(txn.gateway_transaction_id, "ch_123")
        self.assertEqual(txn.payload["data"]["code"], "pl_L")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        self.assertFalse(CartLine.objects.filter(cart__customer=self.customer).exists())

    def test_redelivery_is_a_no_op(self):
        self.issue_link()
        event = self.event_for()

        with self.captureOnCommitCallbacks(execute=True):
            reconcile_payment_event(event)
        add_item(self.customer, self.product.id, 1)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(DuplicateEventError):
                reconcile_payment_event(event)

        self.assertEqual(callbacks, [])
        self.assertEqual(Order.objects.filter(checkout_link_id="pl_L").count(), 1)
        self.assertEqual(PaymentTransaction.objects.filter(gateway_link_id="pl_L").count(), 1)
        self.assertEqual(len(mail.outbox), 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        # Cart filled after the first delivery survives the duplicate.
        self.assertEqual(CartLine.objects.filter(cart__customer=self.customer).count(), 1)

    def test_unique_link_backs_the_guard(self):
        self.issue_link()
        event = self.event_for()
        reconcile_payment_event(event)

        with mock.patch(
            "orders.services.webhook_reconciler._already_reconciled", return_value=False
        ):
            with self.assertRaises(DuplicateEventError):
                reconcile_payment_event(event)

        self.assertEqual(Order.objects.count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

    def test_missing_session_falls_back_to_empty_freight(self):
        result = reconcile_payment_event(self.event_for(link_id="pl_orphan", quantity=1))

        order = result.order
        self.assertEqual(order.freight_name, "")
        self.assertEqual(order.freight_price, Decimal("0.00"))
        self.assertEqual(order.total_amount, Decimal("100.00"))
        self.assertEqual(order.delivery_address["street"], "Rua XV")

    def test_session_owner_is_fallback_customer(self):
        self.issue_link()

        result = reconcile_payment_event(self.event_for(customer_id=None))

        self.assertEqual(result.order.customer, self.customer)

    def test_metadata_customer_is_trusted_over_session(self):
        other = User.objects.create_user(email="caio@example.com", password="x")
        self.issue_link()

        result = reconcile_payment_event(self.event_for(customer_id=other.id))

        self.assertEqual(result.order.customer, other)

    def test_unknown_customer_without_session_fails(self):
        event = self.event_for(link_id="pl_nobody", customer_id=uuid.uuid4())

        with self.assertRaises(InternalError):
            reconcile_payment_event(event)

        self.assertFalse(Order.objects.exists())

    def test_unresolvable_line_fails_whole_event(self):
        self.issue_link()
        event = paid_event(
            "pl_L",
            [(self.product.id, 1, 10000), (uuid.uuid4(), 1, 5000)],
            customer_id=self.customer.id,
        )

        with self.assertRaises(InternalError):
            reconcile_payment_event(event)

        self.assertFalse(Order.objects.exists())
        self.assertFalse(PaymentTransaction.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertEqual(CartLine.objects.filter(cart__customer=self.customer).count(), 1)

    def test_line_without_code_fails_whole_event(self):
        event = self.event_for()
        event["data"]["items"][0]["code"] = ""

        with self.assertRaises(InternalError):
            reconcile_payment_event(event)

        self.assertFalse(Order.objects.exists())

    def test_shortfall_rolls_back_for_redelivery(self):
        self.issue_link()
        Product.objects.filter(id=self.product.id).update(stock=1)

        with self.assertRaises(InternalError):
            reconcile_payment_event(self.event_for())

        self.assertFalse(Order.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

        # Restocked; the gateway retry now succeeds.
        Product.objects.filter(id=self.product.id).update(stock=4)
        result = reconcile_payment_event(self.event_for())
        self.assertEqual(result.outcome, OUTCOME_PROCESSED)

    def test_inactive_product_is_still_fulfilled(self):
        self.issue_link()
        Product.objects.filter(id=self.product.id).update(is_active=False)

        result = reconcile_payment_event(self.event_for())

        self.assertEqual(result.outcome, OUTCOME_PROCESSED)

    def test_unit_price_derived_from_line_total(self):
        event = paid_event("pl_odd", [(self.product.id, 3, 10000)], customer_id=self.customer.id)

        order = reconcile_payment_event(event).order

        line = order.lines.get()
        self.assertEqual(line.line_total, Decimal("100.00"))
        self.assertEqual(line.unit_price, Decimal("33.33"))


class ReconcileEnvelopeTests(WebhookReconcilerBase):
    def test_other_event_types_are_ignored(self):
        result = reconcile_payment_event(self.event_for(event_type="order.created"))

        self.assertEqual(result.outcome, OUTCOME_IGNORED)
        self.assertFalse(Order.objects.exists())

    def test_unpaid_status_is_ignored(self):
        result = reconcile_payment_event(self.event_for(status="failed"))

        self.assertEqual(result.outcome, OUTCOME_IGNORED)

    def test_malformed_envelopes_are_rejected(self):
        for bad in (None, [], {"type": "order.paid"}, {"data": {}}):
            with self.subTest(event=bad):
                with self.assertRaises(ValidationError):
                    reconcile_payment_event(bad)

    def test_paid_event_without_code_is_rejected(self):
        event = self.event_for()
        event["data"]["code"] = ""

        with self.assertRaises(ValidationError):
            reconcile_payment_event(event)

    def test_paid_event_without_items_is_rejected(self):
        event = self.event_for()
        event["data"]["items"] = []

        with self.assertRaises(ValidationError):
            reconcile_payment_event(event)

    def test_bad_quantity_is_rejected(self):
        event = self.event_for()
        event["data"]["items"][0]["quantity"] = 0

        with self.assertRaises(ValidationError):
            reconcile_payment_event(event)

        self.assertFalse(Order.objects.exists())
