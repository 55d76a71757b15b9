# orders/services/webhook_reconciler.py

"""
PAYMENT WEBHOOK RECONCILER

Turns a gateway "order.paid" event for a payment link into a PAID Order.

Delivery model: at-least-once, possibly out of order, possibly concurrent.

Rules:
- Malformed envelope -> ValidationError before any side effect.
- Events other than a paid order.paid are acknowledged and ignored.
- Already reconciled link id -> DuplicateEventError (acknowledged as no-op).
  The read-then-act guard is backed by unique constraints on
  Order.checkout_link_id and PaymentTransaction.gateway_link_id; an
  IntegrityError on either is a concurrent duplicate.
- Everything from order insert to cart clear is one transaction. Any
  failure rolls it all back and surfaces as InternalError so the endpoint
  answers non-2xx and the gateway redelivers.
- A line whose `code` does not resolve to a catalog product fails the
  whole event.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from cart.services import clear_cart
from common.exceptions import (
    DuplicateEventError,
    InternalError,
    StorefrontError,
    ValidationError,
)
from orders.models import CheckoutSession, Order, PaymentTransaction
from orders.services.materialize import (
    FreightChoice,
    MaterializeRequest,
    PurchaseLine,
    materialize_order,
)
from orders.services.notifications import schedule_order_confirmation

logger = logging.getLogger(__name__)

User = get_user_model()

PAID_EVENT_TYPE = "order.paid"
PAID_STATUS = "paid"

OUTCOME_PROCESSED = "processed"
OUTCOME_IGNORED = "ignored"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: str
    link_id: str = ""
    order: Order | None = None


# ============================================================
# ENVELOPE PARSING (no side effects)
# ============================================================

def _require_int(value, *, field_name: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return number


def _parse_envelope(event) -> tuple[str, dict]:
    if not isinstance(event, dict):
        raise ValidationError("Webhook body must be a JSON object")

    event_type = event.get("type")
    data = event.get("data")
    if not isinstance(event_type, str) or not event_type.strip():
        raise ValidationError("Webhook event type is missing")
    if not isinstance(data, dict):
        raise ValidationError("Webhook event data is missing")

    return event_type.strip(), data


def _parse_paid_order(data: dict) -> dict:
    link_id = str(data.get("code") or "").strip()
    if not link_id:
        raise ValidationError("Paid event has no payment link code")

    items = data.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("Paid event has no items")

    lines = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        quantity = _require_int(
            item.get("quantity", 1), field_name=f"items[{idx}].quantity", minimum=1
        )
        amount = _require_int(item.get("amount"), field_name=f"items[{idx}].amount")
        lines.append(
            {
                "code": str(item.get("code") or "").strip(),
                "name": str(item.get("description") or item.get("name") or ""),
                "quantity": quantity,
                "amount": amount,
            }
        )

    charges = data.get("charges") or []
    charge = charges[0] if isinstance(charges, list) and charges and isinstance(charges[0], dict) else {}
    last_transaction = charge.get("last_transaction") or {}

    installments = charge.get("installments") or last_transaction.get("installments") or 1

    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        metadata = (data.get("integration") or {}).get("metadata") or {}

    return {
        "link_id": link_id,
        "gateway_order_id": str(data.get("id") or ""),
        "amount": _require_int(data.get("amount", 0), field_name="amount"),
        "lines": lines,
        "charge_id": str(charge.get("id") or data.get("id") or ""),
        "payment_method": str(charge.get("payment_method") or "unknown"),
        "installments": _require_int(installments, field_name="installments", minimum=1),
        "metadata": metadata if isinstance(metadata, dict) else {},
    }


# ============================================================
# RESOLUTION
# ============================================================

def _already_reconciled(link_id: str) -> bool:
    return (
        PaymentTransaction.objects.filter(gateway_link_id=link_id).exists()
        or Order.objects.filter(checkout_link_id=link_id).exists()
    )


def _resolve_customer(metadata: dict, session: CheckoutSession | None):
    raw = str(metadata.get("customer_id") or "").strip()
    if raw:
        try:
            customer = User.objects.filter(id=uuid.UUID(raw)).first()
        except ValueError:
            customer = None
        if customer is not None:
            return customer
        logger.warning("metadata customer_id did not resolve", extra={"customer_id": raw})

    if session is not None:
        return session.customer

    raise InternalError("Could not resolve the purchasing customer")


def _purchase_lines(parsed_lines: list[dict]) -> list[PurchaseLine]:
    out = []
    for line in parsed_lines:
        if not line["code"]:
            raise InternalError(f"Purchased item '{line['name']}' carries no product code")

        quantity = line["quantity"]
        line_total = (Decimal(line["amount"]) / Decimal("100")).quantize(Decimal("0.01"))
        unit_price = (line_total / Decimal(quantity)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        out.append(
            PurchaseLine(
                product_id=line["code"],
                quantity=quantity,
                unit_price=unit_price,
                line_total=line_total,
            )
        )
    return out


# ============================================================
# ENTRY POINT
# ============================================================

def reconcile_payment_event(event) -> ReconcileResult:
    event_type, data = _parse_envelope(event)

    if event_type != PAID_EVENT_TYPE or str(data.get("status") or "").lower() != PAID_STATUS:
        logger.info(
            "webhook event ignored",
            extra={"event_type": event_type, "event_status": data.get("status")},
        )
        return ReconcileResult(outcome=OUTCOME_IGNORED)

    parsed = _parse_paid_order(data)
    link_id = parsed["link_id"]

    if _already_reconciled(link_id):
        logger.info("duplicate paid event", extra={"link_id": link_id})
        raise DuplicateEventError(f"Payment link {link_id} already reconciled")

    try:
        order = _materialize_paid_order(event, parsed)
    except DuplicateEventError:
        raise
    except IntegrityError as exc:
        logger.info("concurrent duplicate paid event", extra={"link_id": link_id})
        raise DuplicateEventError(f"Payment link {link_id} already reconciled") from exc
    except StorefrontError as exc:
        logger.exception("paid event could not be materialized", extra={"link_id": link_id})
        if isinstance(exc, InternalError):
            raise
        raise InternalError(f"Paid event for {link_id} failed: {exc}") from exc
    except Exception as exc:
        logger.exception("unexpected error reconciling paid event", extra={"link_id": link_id})
        raise InternalError(f"Paid event for {link_id} failed") from exc

    return ReconcileResult(outcome=OUTCOME_PROCESSED, link_id=link_id, order=order)


@transaction.atomic
def _materialize_paid_order(event: dict, parsed: dict) -> Order:
    link_id = parsed["link_id"]

    session = (
        CheckoutSession.objects.select_for_update()
        .select_related("customer")
        .filter(link_id=link_id)
        .first()
    )

    # Re-check under the session lock; a concurrent delivery may have won.
    if _already_reconciled(link_id):
        raise DuplicateEventError(f"Payment link {link_id} already reconciled")

    customer = _resolve_customer(parsed["metadata"], session)

    if session is not None:
        freight = FreightChoice(
            name=session.freight_name,
            price=session.freight_price,
            lead_days=session.freight_lead_days,
        )
        delivery_address = session.delivery_address or customer.delivery_address()
    else:
        logger.warning("paid event without checkout session", extra={"link_id": link_id})
        freight = FreightChoice.empty()
        delivery_address = customer.delivery_address()

    order = materialize_order(
        MaterializeRequest(
            customer=customer,
            lines=_purchase_lines(parsed["lines"]),
            status=Order.STATUS_PAID,
            payment_method=parsed["payment_method"],
            freight=freight,
            delivery_address=delivery_address,
            checkout_link_id=link_id,
            require_active_products=False,
        )
    )

    PaymentTransaction.objects.create(
        order=order,
        gateway_transaction_id=parsed["charge_id"] or parsed["gateway_order_id"],
        status=PAID_STATUS,
        payment_method=parsed["payment_method"],
        amount_cents=parsed["amount"],
        installments=parsed["installments"],
        gateway_link_id=link_id,
        payload=event,
    )

    clear_cart(customer)
    schedule_order_confirmation(order.id)

    logger.info(
        "paid event reconciled",
        extra={"link_id": link_id, "order_id": str(order.id), "customer_id": str(customer.id)},
    )
    return order
