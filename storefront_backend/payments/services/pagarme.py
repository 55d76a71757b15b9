# payments/services/pagarme.py

"""
PAGAR.ME v5 CLIENT

Stateless client for the payment-link API:
- create_payment_link(): POST /paymentlinks
- fetch_payment_link(): GET /paymentlinks/<id>
- verify_webhook_signature(): HMAC check of the raw webhook body

Credentials are read once (PagarmeClient.from_settings()) and the instance
is injected into services; tests pass fakes instead.

Every transport or gateway failure surfaces as ExternalServiceError.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

from common.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://sdx-api.pagar.me/core/v5"


def to_cents(amount) -> int:
    """Decimal currency amount -> integer centavos (half-up)."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid Decimal") from exc
    cents = (value * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def from_cents(cents) -> Decimal:
    return (Decimal(int(cents)) / Decimal("100")).quantize(Decimal("0.01"))


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


@dataclass(frozen=True)
class PagarmeClient:
    secret_key: str
    api_base: str = DEFAULT_API_BASE
    webhook_secret: str = ""
    timeout: int = 25

    @classmethod
    def from_settings(cls) -> "PagarmeClient":
        payments = getattr(settings, "PAYMENTS", {}) or {}
        cfg = payments.get("PAGARME") or {}
        return cls(
            secret_key=(cfg.get("SECRET_KEY") or "").strip(),
            api_base=(cfg.get("API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            webhook_secret=(cfg.get("WEBHOOK_SECRET") or "").strip(),
            timeout=int(cfg.get("TIMEOUT_SECONDS") or 25),
        )

    # -------------------------------------------------
    # Transport
    # -------------------------------------------------

    def _auth_header(self) -> str:
        if not self.secret_key:
            raise ExternalServiceError("Payment gateway is not configured.")
        token = base64.b64encode(f"{self.secret_key}:".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    def _request_json(self, method: str, path: str, *, body: dict | None = None) -> dict:
        url = f"{self.api_base}/{path.lstrip('/')}"
        data = None
        if body is not None:
            data = json.dumps(body, ensure_ascii=False).encode("utf-8")

        req = Request(
            url,
            data=data,
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method=method,
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
                parsed_any = _parse_json_or_text(raw)
        except HTTPError as e:
            try:
                raw = e.read().decode("utf-8", errors="replace")
            except OSError:
                raw = ""
            parsed_any = _parse_json_or_text(raw)

            if parsed_any.get("kind") == "json":
                j = parsed_any.get("json") or {}
                msg = j.get("message") or j.get("errors") or "Pagar.me rejected request"
                logger.warning(
                    "pagarme http error",
                    extra={"status": e.code, "path": path, "detail": _safe_preview(str(msg))},
                )
                raise ExternalServiceError(f"Pagar.me HTTPError: {e.code} {msg}") from e

            preview = _safe_preview(parsed_any.get("raw") or str(e))
            raise ExternalServiceError(f"Pagar.me HTTPError: {e.code} {preview}") from e
        except URLError as e:
            logger.warning("pagarme unreachable", extra={"path": path, "error": str(e)})
            raise ExternalServiceError(f"Pagar.me URLError: {e}") from e
        except (TimeoutError, OSError) as e:
            raise ExternalServiceError(f"Pagar.me request failed: {e}") from e

        if parsed_any.get("kind") != "json":
            raise ExternalServiceError(
                f"Pagar.me returned non-JSON: {_safe_preview(parsed_any.get('raw') or '')}"
            )

        return parsed_any.get("json") or {}

    # -------------------------------------------------
    # Payment links
    # -------------------------------------------------

    def create_payment_link(self, payload: dict) -> dict:
        """
        Create a hosted checkout link.

        Returns {"id": <link id>, "url": <redirect url>, "raw": <response>}.
        """
        parsed = self._request_json("POST", "/paymentlinks", body=payload)

        link_id = str(parsed.get("id") or "").strip()
        url = str(parsed.get("url") or "").strip()
        if not link_id or not url:
            raise ExternalServiceError("Pagar.me response is missing the link id or url.")

        logger.info("pagarme payment link created", extra={"link_id": link_id})
        return {"id": link_id, "url": url, "raw": parsed}

    def fetch_payment_link(self, link_id: str) -> dict:
        """
        Look a link up and summarize its first charge.

        Returns {"status", "payment_method", "amount", "paid"}.
        """
        ref = str(link_id or "").strip()
        if not ref:
            raise ExternalServiceError("link id is required")

        link = self._request_json("GET", f"/paymentlinks/{ref}")

        charges = link.get("charges") or []
        charge = charges[0] if charges and isinstance(charges[0], dict) else {}
        cart_settings = link.get("cart_settings") or {}

        charge_status = str(charge.get("status") or "pending").strip().lower()
        return {
            "status": charge_status,
            "payment_method": charge.get("payment_method"),
            "amount": charge.get("amount") or cart_settings.get("items_total_cost") or 0,
            "paid": charge_status == "paid",
        }

    # -------------------------------------------------
    # Webhooks
    # -------------------------------------------------

    @property
    def verifies_signatures(self) -> bool:
        return bool(self.webhook_secret)

    def verify_webhook_signature(self, *, raw_body: bytes, signature: str | None) -> bool:
        """
        Check an "X-Hub-Signature: sha1=<hex>" (or sha256=) header.

        Without a configured webhook secret every body is accepted.
        """
        if not self.webhook_secret:
            return True
        if not signature:
            return False

        algo, _, received = str(signature).strip().partition("=")
        digestmod = {"sha1": hashlib.sha1, "sha256": hashlib.sha256}.get(algo.lower())
        if digestmod is None or not received:
            return False

        computed = hmac.new(
            self.webhook_secret.encode("utf-8"), raw_body or b"", digestmod
        ).hexdigest()
        return hmac.compare_digest(computed, received.strip().lower())
