# orders/services/installments.py

"""
INSTALLMENT SCHEDULE

Per-period amount for i = 1..N is round(total / i), half-up, in centavos.
The schedule is informational (sent to the gateway); sum(per-period x i)
may drift from the total by a few centavos and is not reconciled.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MAX_INSTALLMENTS = 12


def build_installments(total_cents: int, max_installments: int = MAX_INSTALLMENTS) -> list[dict]:
    total = int(total_cents)
    if total < 0:
        raise ValueError("total_cents cannot be negative")

    count = max(1, int(max_installments))
    schedule = []
    for number in range(1, count + 1):
        per_period = (Decimal(total) / Decimal(number)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        schedule.append({"number": number, "total": int(per_period)})
    return schedule
