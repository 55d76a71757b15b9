# orders/tests/test_order_api.py

"""
ORDER READ + LIFECYCLE API TESTS

Guarantees:
- Link status is only visible to the customer the link was issued to
- Gateway lookups are a hint; a failing gateway reads as "unknown"
- Staff transitions follow the lifecycle table; illegal moves are 409
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from orders.models import CheckoutSession, Order
from orders.services.order_lifecycle import can_transition
from orders.tests.helpers import FakeGateway
from payments.services.pagarme import PagarmeClient

User = get_user_model()


class LifecycleRuleTests(SimpleTestCase):
    def test_allowed_path(self):
        path = [
            Order.STATUS_PENDING_PAYMENT,
            Order.STATUS_PAID,
            Order.STATUS_PROCESSING,
            Order.STATUS_SHIPPED,
            Order.STATUS_DELIVERED,
            Order.STATUS_COMPLETED,
        ]
        for current, nxt in zip(path, path[1:]):
            with self.subTest(current=current, nxt=nxt):
                self.assertTrue(can_transition(from_status=current, to_status=nxt))

    def test_terminal_states_never_move(self):
        for terminal in (Order.STATUS_CANCELED, Order.STATUS_COMPLETED):
            self.assertFalse(
                can_transition(from_status=terminal, to_status=Order.STATUS_PROCESSING)
            )

    def test_shipped_orders_cannot_be_canceled(self):
        self.assertFalse(
            can_transition(from_status=Order.STATUS_SHIPPED, to_status=Order.STATUS_CANCELED)
        )


class OrderApiBase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="rui@example.com", password="x")
        self.other = User.objects.create_user(email="eva@example.com", password="x")
        self.staff = User.objects.create_user(email="ops@example.com", password="x", role="staff")
        self.client = APIClient()
        self.client.force_authenticate(user=self.customer)

    def make_order(self, customer=None, **fields):
        fields.setdefault("status", Order.STATUS_PENDING_PAYMENT)
        fields.setdefault("subtotal_amount", Decimal("50.00"))
        fields.setdefault("total_amount", Decimal("50.00"))
        return Order.objects.create(customer=customer or self.customer, **fields)

    def make_session(self, link_id, customer=None):
        return CheckoutSession.objects.create(
            link_id=link_id,
            customer=customer or self.customer,
            freight_name="Correios PAC",
            total_cents=5000,
            subtotal_cents=5000,
        )


class OrderLinkStatusTests(OrderApiBase):
    def test_reconciled_link_reports_order(self):
        self.make_session("pl_done")
        order = self.make_order(status=Order.STATUS_PAID, checkout_link_id="pl_done")

        response = self.client.get(reverse("orders:link-status", args=["pl_done"]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Order.STATUS_PAID)
        self.assertEqual(str(response.data["order_id"]), str(order.id))
        self.assertEqual(response.data["order_no"], order.order_no)

    def test_unreconciled_link_is_pending(self):
        self.make_session("pl_wait")

        response = self.client.get(reverse("orders:link-status", args=["pl_wait"]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Order.STATUS_PENDING_PAYMENT)
        self.assertIsNone(response.data["order_id"])
        self.assertNotIn("gateway_status", response.data)

    def test_other_customers_link_is_not_found(self):
        self.make_session("pl_eva", customer=self.other)
        self.make_order(customer=self.other, status=Order.STATUS_PAID, checkout_link_id="pl_paid")

        for link_id in ("pl_eva", "pl_paid", "pl_unknown"):
            with self.subTest(link_id=link_id):
                response = self.client.get(reverse("orders:link-status", args=[link_id]))
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_gateway_hint(self):
        self.make_session("pl_wait")
        gateway = FakeGateway(link_status="processing")

        with mock.patch.object(PagarmeClient, "from_settings", return_value=gateway):
            response = self.client.get(
                reverse("orders:link-status", args=["pl_wait"]), {"gateway": "1"}
            )

        self.assertEqual(response.data["gateway_status"], "processing")
        self.assertEqual(gateway.fetched, ["pl_wait"])

    def test_gateway_failure_reads_as_unknown(self):
        self.make_session("pl_wait")

        with mock.patch.object(
            PagarmeClient, "from_settings", return_value=FakeGateway(fail=True)
        ):
            response = self.client.get(
                reverse("orders:link-status", args=["pl_wait"]), {"gateway": "true"}
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["gateway_status"], "unknown")


class OrderListTests(OrderApiBase):
    def test_lists_only_own_orders(self):
        mine = self.make_order()
        self.make_order(customer=self.other)

        response = self.client.get(reverse("orders:orders"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], str(mine.id))

    def test_filter_by_status(self):
        self.make_order()
        paid = self.make_order(status=Order.STATUS_PAID)

        response = self.client.get(reverse("orders:orders"), {"status": Order.STATUS_PAID})

        self.assertEqual([row["id"] for row in response.data["results"]], [str(paid.id)])

    def test_staff_cannot_list_as_customer(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.get(reverse("orders:orders"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrderTransitionTests(OrderApiBase):
    def setUp(self):
        super().setUp()
        self.client.force_authenticate(user=self.staff)

    def test_staff_moves_paid_order_forward(self):
        order = self.make_order(status=Order.STATUS_PAID)

        response = self.client.patch(
            reverse("orders:transition", args=[order.id]),
            {"status": Order.STATUS_PROCESSING},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PROCESSING)

    def test_marking_paid_stamps_paid_at(self):
        order = self.make_order()

        self.client.patch(
            reverse("orders:transition", args=[order.id]),
            {"status": Order.STATUS_PAID},
            format="json",
        )

        order.refresh_from_db()
        self.assertIsNotNone(order.paid_at)

    def test_illegal_transition_is_conflict(self):
        order = self.make_order()

        response = self.client.patch(
            reverse("orders:transition", args=[order.id]),
            {"status": Order.STATUS_SHIPPED},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "INVALID_TRANSITION")
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PENDING_PAYMENT)

    def test_unknown_order_is_not_found(self):
        response = self.client.patch(
            reverse("orders:transition", args=[uuid.uuid4()]),
            {"status": Order.STATUS_PAID},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_cannot_transition(self):
        order = self.make_order()
        self.client.force_authenticate(user=self.customer)

        response = self.client.patch(
            reverse("orders:transition", args=[order.id]),
            {"status": Order.STATUS_CANCELED},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
