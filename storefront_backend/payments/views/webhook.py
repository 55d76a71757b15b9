# payments/views/webhook.py

"""
PAGAR.ME WEBHOOK

Policy (the gateway retries anything non-2xx):
- bad signature                    -> 401, nothing written
- malformed body                   -> 400, nothing written
- ignored event types              -> 200
- duplicate delivery               -> 200 (no-op)
- materialization failure          -> 500, rolled back, gateway redelivers
"""

from __future__ import annotations

import json
import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from common.api import domain_error_response, error_response
from common.exceptions import DuplicateEventError, StorefrontError, UnauthorizedError
from orders.services import reconcile_payment_event
from payments.services.pagarme import PagarmeClient

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


class PagarmeWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [WebhookThrottle]

    # Overridable in tests
    gateway_factory = staticmethod(PagarmeClient.from_settings)

    @extend_schema(
        request=dict,
        responses={200: dict, 400: dict, 401: dict, 500: dict},
        description="Pagar.me event receiver (order.paid materializes the order).",
    )
    def post(self, request, *args, **kwargs):
        raw_body = request.body or b""
        gateway = self.gateway_factory()

        if not gateway.verify_webhook_signature(
            raw_body=raw_body, signature=request.headers.get("X-Hub-Signature")
        ):
            logger.warning("invalid pagarme webhook signature")
            return domain_error_response(UnauthorizedError("Invalid webhook signature"))

        try:
            event = json.loads(raw_body.decode("utf-8") or "null")
        except (UnicodeDecodeError, ValueError):
            return error_response(
                code="VALIDATION_ERROR",
                message="Webhook body must be JSON",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = reconcile_payment_event(event)
        except DuplicateEventError as exc:
            return Response(
                {"ok": True, "detail": "Already processed", "code": exc.code},
                status=status.HTTP_200_OK,
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        body = {"ok": True, "detail": result.outcome}
        if result.order is not None:
            body["order_id"] = str(result.order.id)
        return Response(body, status=status.HTTP_200_OK)
