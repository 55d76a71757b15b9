# payments/tests/test_pagarme_client.py

"""
PAGAR.ME CLIENT TESTS

No network: urlopen is patched at the module boundary.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import io
import json
from decimal import Decimal
from unittest import mock
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase, override_settings

from common.exceptions import ExternalServiceError
from payments.services.pagarme import PagarmeClient, from_cents, to_cents

URLOPEN = "payments.services.pagarme.urlopen"


def _response(body):
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    resp = mock.MagicMock()
    resp.read.return_value = raw
    resp.__enter__.return_value = resp
    return resp


class MoneyConversionTests(SimpleTestCase):
    def test_to_cents_rounds_half_up(self):
        self.assertEqual(to_cents(Decimal("59.90")), 5990)
        self.assertEqual(to_cents("10.005"), 1001)
        self.assertEqual(to_cents(0), 0)

    def test_to_cents_rejects_garbage(self):
        with self.assertRaises(ValueError):
            to_cents("abc")

    def test_from_cents(self):
        self.assertEqual(from_cents(21500), Decimal("215.00"))


class PagarmeClientTests(SimpleTestCase):
    def setUp(self):
        self.gateway = PagarmeClient(secret_key="sk_test_123", api_base="https://api.test/core/v5")

    @override_settings(
        PAYMENTS={
            "PAGARME": {
                "SECRET_KEY": " sk_live ",
                "API_BASE": "https://api.pagar.me/core/v5/",
                "WEBHOOK_SECRET": "whsec",
                "TIMEOUT_SECONDS": 9,
            }
        }
    )
    def test_from_settings(self):
        client = PagarmeClient.from_settings()

        self.assertEqual(client.secret_key, "sk_live")
        self.assertEqual(client.api_base, "https://api.pagar.me/core/v5")
        self.assertEqual(client.timeout, 9)
        self.assertTrue(client.verifies_signatures)

    def test_create_payment_link_posts_with_basic_auth(self):
        body = {"id": "pl_1", "url": "https://pay/pl_1"}
        with mock.patch(URLOPEN, return_value=_response(body)) as urlopen:
            link = self.gateway.create_payment_link({"type": "order"})

        self.assertEqual(link["id"], "pl_1")
        self.assertEqual(link["url"], "https://pay/pl_1")

        req = urlopen.call_args[0][0]
        self.assertEqual(req.full_url, "https://api.test/core/v5/paymentlinks")
        self.assertEqual(req.get_method(), "POST")
        expected = base64.b64encode(b"sk_test_123:").decode("ascii")
        self.assertEqual(req.get_header("Authorization"), f"Basic {expected}")
        self.assertEqual(json.loads(req.data), {"type": "order"})

    def test_missing_secret_key_never_calls_out(self):
        client = PagarmeClient(secret_key="")

        with mock.patch(URLOPEN) as urlopen:
            with self.assertRaises(ExternalServiceError):
                client.create_payment_link({})

        urlopen.assert_not_called()

    def test_http_error_becomes_external_service_error(self):
        error = HTTPError(
            "https://api.test/core/v5/paymentlinks",
            422,
            "Unprocessable",
            {},
            io.BytesIO(b'{"message": "customer.document is invalid"}'),
        )
        with mock.patch(URLOPEN, side_effect=error):
            with self.assertRaises(ExternalServiceError) as ctx:
                self.gateway.create_payment_link({})

        self.assertIn("422", ctx.exception.message)
        self.assertIn("document", ctx.exception.message)

    def test_unreachable_gateway(self):
        with mock.patch(URLOPEN, side_effect=URLError("timed out")):
            with self.assertRaises(ExternalServiceError):
                self.gateway.create_payment_link({})

    def test_non_json_body(self):
        with mock.patch(URLOPEN, return_value=_response(b"<html>oops</html>")):
            with self.assertRaises(ExternalServiceError):
                self.gateway.create_payment_link({})

    def test_response_without_url(self):
        with mock.patch(URLOPEN, return_value=_response({"id": "pl_1"})):
            with self.assertRaises(ExternalServiceError):
                self.gateway.create_payment_link({})

    def test_fetch_payment_link_summarizes_first_charge(self):
        body = {
            "id": "pl_1",
            "charges": [{"status": "PAID", "payment_method": "pix", "amount": 4990}],
        }
        with mock.patch(URLOPEN, return_value=_response(body)) as urlopen:
            summary = self.gateway.fetch_payment_link("pl_1")

        self.assertEqual(urlopen.call_args[0][0].get_method(), "GET")
        self.assertEqual(
            summary, {"status": "paid", "payment_method": "pix", "amount": 4990, "paid": True}
        )

    def test_fetch_without_charges_is_pending(self):
        with mock.patch(URLOPEN, return_value=_response({"id": "pl_1"})):
            summary = self.gateway.fetch_payment_link("pl_1")

        self.assertEqual(summary["status"], "pending")
        self.assertFalse(summary["paid"])


class WebhookSignatureTests(SimpleTestCase):
    body = b'{"type": "order.paid"}'

    def sign(self, algo, secret="whsec"):
        digest = hmac.new(secret.encode(), self.body, getattr(hashlib, algo)).hexdigest()
        return f"{algo}={digest}"

    def test_without_secret_everything_passes(self):
        client = PagarmeClient(secret_key="sk")

        self.assertFalse(client.verifies_signatures)
        self.assertTrue(client.verify_webhook_signature(raw_body=self.body, signature=None))

    def test_sha1_and_sha256_are_accepted(self):
        client = PagarmeClient(secret_key="sk", webhook_secret="whsec")

        for algo in ("sha1", "sha256"):
            with self.subTest(algo=algo):
                self.assertTrue(
                    client.verify_webhook_signature(raw_body=self.body, signature=self.sign(algo))
                )

    def test_wrong_or_missing_signature_is_rejected(self):
        client = PagarmeClient(secret_key="sk", webhook_secret="whsec")

        for signature in (None, "", "sha1=deadbeef", "md5=abc", self.sign("sha1", "other")):
            with self.subTest(signature=signature):
                self.assertFalse(
                    client.verify_webhook_signature(raw_body=self.body, signature=signature)
                )
