# orders/tests/test_checkout_session.py

"""
PAYMENT LINK TESTS

Guarantees:
- The gateway sees every cart line with the product id as its code
- Amounts are integer centavos; the installment schedule rounds half-up
- Nothing is persisted when the gateway fails
- Issuing a link touches neither stock nor the cart
"""

from __future__ import annotations

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cart.models import CartLine
from cart.services import add_item
from common.exceptions import EmptyCartError, ExternalServiceError, ValidationError
from orders.models import CheckoutSession
from orders.services import FreightChoice, issue_checkout_session
from orders.services.installments import build_installments
from orders.tests.helpers import FakeGateway
from payments.services.pagarme import PagarmeClient
from products.models import Product

User = get_user_model()


class InstallmentScheduleTests(SimpleTestCase):
    def test_each_period_rounds_half_up(self):
        schedule = build_installments(10000, 12)

        self.assertEqual(len(schedule), 12)
        self.assertEqual(schedule[0], {"number": 1, "total": 10000})
        self.assertEqual(schedule[2], {"number": 3, "total": 3333})
        self.assertEqual(schedule[5], {"number": 6, "total": 1667})
        self.assertEqual(schedule[6], {"number": 7, "total": 1429})

    def test_drift_is_not_reconciled(self):
        schedule = build_installments(10000, 3)

        self.assertEqual(schedule[2]["total"] * 3, 9999)

    def test_at_least_one_installment(self):
        self.assertEqual(build_installments(500, 0), [{"number": 1, "total": 500}])


class CheckoutSessionBase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(
            email="lia@example.com",
            password="testpass123",
            first_name="Lia",
            last_name="Costa",
            document="123.456.789-09",
            address_street="Av. Paulista",
            address_number="1000",
            address_city="São Paulo",
            address_state="SP",
            address_postal_code="01310-100",
        )
        self.product = Product.objects.create(
            sku="TEN-01", name="Tênis", unit_price=Decimal("100.00"), stock=5
        )
        self.cheap = Product.objects.create(
            sku="MEI-01", name="Meia", unit_price=Decimal("9.99"), stock=10
        )
        self.freight = FreightChoice(name="Correios PAC", price=Decimal("15.00"), lead_days=8)


class IssueCheckoutSessionTests(CheckoutSessionBase):
    def test_payload_carries_ids_and_centavos(self):
        add_item(self.customer, self.product.id, 2)
        gateway = FakeGateway(link_id="pl_A1")

        session = issue_checkout_session(self.customer, freight=self.freight, gateway=gateway)

        payload = gateway.created[0]
        items = payload["cart_settings"]["items"]
        self.assertEqual(
            items,
            [
                {
                    "code": str(self.product.id),
                    "name": "Tênis",
                    "amount": 20000,
                    "default_quantity": 2,
                }
            ],
        )
        self.assertEqual(payload["cart_settings"]["shipping_cost"], 1500)
        self.assertEqual(payload["cart_settings"]["total_cost"], 21500)
        self.assertEqual(payload["metadata"]["customer_id"], str(self.customer.id))
        self.assertEqual(payload["customer_settings"]["customer"]["document"], "12345678909")
        self.assertEqual(payload["customer_settings"]["customer"]["document_type"], "cpf")

        installments = payload["payment_settings"]["credit_card_settings"]["installments"]
        self.assertEqual(len(installments), 12)
        self.assertEqual(installments[2], {"number": 3, "total": 7167})

        self.assertEqual(session.link_id, "pl_A1")
        self.assertEqual(session.total_cents, 21500)
        self.assertEqual(session.subtotal_cents, 20000)
        self.assertEqual(session.freight_name, "Correios PAC")
        self.assertEqual(session.delivery_address["street"], "Av. Paulista")
        self.assertTrue(session.payment_url.endswith("pl_A1"))

    def test_line_totals_round_per_line(self):
        add_item(self.customer, self.cheap.id, 3)
        gateway = FakeGateway()

        session = issue_checkout_session(self.customer, freight=self.freight, gateway=gateway)

        self.assertEqual(gateway.created[0]["cart_settings"]["items"][0]["amount"], 2997)
        self.assertEqual(session.subtotal_cents, 2997)

    @override_settings(PAYMENTS={"PAGARME": {"MAX_INSTALLMENTS": 4}})
    def test_installment_cap_comes_from_settings(self):
        add_item(self.customer, self.product.id, 1)
        gateway = FakeGateway()

        session = issue_checkout_session(self.customer, freight=self.freight, gateway=gateway)

        self.assertEqual(len(session.installments), 4)

    def test_stock_and_cart_untouched(self):
        add_item(self.customer, self.product.id, 2)

        issue_checkout_session(self.customer, freight=self.freight, gateway=FakeGateway())

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertEqual(CartLine.objects.filter(cart__customer=self.customer).count(), 1)

    def test_gateway_failure_persists_nothing(self):
        add_item(self.customer, self.product.id, 1)

        with self.assertRaises(ExternalServiceError):
            issue_checkout_session(
                self.customer, freight=self.freight, gateway=FakeGateway(fail=True)
            )

        self.assertFalse(CheckoutSession.objects.exists())

    def test_empty_cart_is_rejected(self):
        gateway = FakeGateway()

        with self.assertRaises(EmptyCartError):
            issue_checkout_session(self.customer, freight=self.freight, gateway=gateway)

        self.assertEqual(gateway.created, [])

    def test_missing_freight_is_rejected(self):
        add_item(self.customer, self.product.id, 1)

        with self.assertRaises(ValidationError):
            issue_checkout_session(
                self.customer, freight=FreightChoice.empty(), gateway=FakeGateway()
            )

    def test_document_is_required(self):
        self.customer.document = ""
        self.customer.save(update_fields=["document"])
        add_item(self.customer, self.product.id, 1)
        gateway = FakeGateway()

        with self.assertRaises(ValidationError):
            issue_checkout_session(self.customer, freight=self.freight, gateway=gateway)

        self.assertEqual(gateway.created, [])
        self.assertFalse(CheckoutSession.objects.exists())

    def test_freight_input_validation(self):
        with self.assertRaises(ValidationError):
            FreightChoice.from_input(name=" ", price="10.00", lead_days=2)
        with self.assertRaises(ValidationError):
            FreightChoice.from_input(name="PAC", price="-1.00", lead_days=2)
        with self.assertRaises(ValidationError):
            FreightChoice.from_input(name="PAC", price="10.00", lead_days=-1)

        choice = FreightChoice.from_input(name=" PAC ", price="10.5", lead_days="4")
        self.assertEqual(choice, FreightChoice(name="PAC", price=Decimal("10.50"), lead_days=4))


class CheckoutSessionAPITests(CheckoutSessionBase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.customer)
        self.body = {"freight": {"name": "Correios PAC", "price": "15.00", "lead_days": 8}}

    def test_post_returns_payment_url(self):
        add_item(self.customer, self.product.id, 1)
        gateway = FakeGateway(link_id="pl_api")

        with mock.patch.object(PagarmeClient, "from_settings", return_value=gateway):
            response = self.client.post(
                reverse("orders:checkout-session"), self.body, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["link_id"], "pl_api")
        self.assertEqual(response.data["total_cents"], 11500)
        self.assertIn("pl_api", response.data["payment_url"])

    def test_gateway_failure_is_bad_gateway(self):
        add_item(self.customer, self.product.id, 1)

        with mock.patch.object(
            PagarmeClient, "from_settings", return_value=FakeGateway(fail=True)
        ):
            response = self.client.post(
                reverse("orders:checkout-session"), self.body, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data["error"]["code"], "EXTERNAL_SERVICE_ERROR")
        self.assertFalse(CheckoutSession.objects.exists())

    def test_freight_is_required(self):
        add_item(self.customer, self.product.id, 1)

        response = self.client.post(reverse("orders:checkout-session"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
