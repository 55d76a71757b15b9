# shipping/services/melhor_envio.py

"""
MELHOR ENVIO CLIENT

Carrier-rate lookup: POST /me/shipment/calculate with a Bearer token.

The provider answers a JSON list with one entry per carrier service; entries
the provider cannot quote carry an "error" key instead of a price.

Transport and provider failures surface as ExternalServiceError.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

from common.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://www.melhorenvio.com.br/api/v2"
DEFAULT_USER_AGENT = "Storefront (ops@storefront.local)"


@dataclass(frozen=True)
class MelhorEnvioClient:
    token: str
    api_base: str = DEFAULT_API_BASE
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = 20

    @classmethod
    def from_settings(cls) -> "MelhorEnvioClient":
        shipping = getattr(settings, "SHIPPING", {}) or {}
        cfg = shipping.get("MELHORENVIO") or {}
        return cls(
            token=(cfg.get("TOKEN") or "").strip(),
            api_base=(cfg.get("API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            user_agent=cfg.get("USER_AGENT") or DEFAULT_USER_AGENT,
        )

    def calculate(self, payload: dict) -> list[dict]:
        if not self.token:
            raise ExternalServiceError("Freight provider is not configured.")

        req = Request(
            f"{self.api_base}/me/shipment/calculate",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.token}",
                "User-Agent": self.user_agent,
            },
            method="POST",
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="replace")[:500]
            except OSError:
                detail = ""
            logger.warning(
                "melhor envio http error", extra={"status": e.code, "detail": detail}
            )
            raise ExternalServiceError(f"Melhor Envio HTTPError: {e.code}") from e
        except URLError as e:
            logger.warning("melhor envio unreachable", extra={"error": str(e)})
            raise ExternalServiceError(f"Melhor Envio URLError: {e}") from e
        except (TimeoutError, OSError) as e:
            raise ExternalServiceError(f"Melhor Envio request failed: {e}") from e

        try:
            parsed = json.loads(raw or "null")
        except ValueError as e:
            raise ExternalServiceError("Melhor Envio returned non-JSON") from e

        if not isinstance(parsed, list):
            raise ExternalServiceError("Melhor Envio returned an unexpected payload")
        return [entry for entry in parsed if isinstance(entry, dict)]
