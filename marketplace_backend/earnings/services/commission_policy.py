# earnings/services/commission_policy.py

"""
COMMISSION POLICY (PURE)

Splits an order total (integer minor units) into vendor and platform shares.

Rules:
- platform_share = round_half_up(total * rate) in whole minor units
- vendor_share   = total - platform_share  (derived, never rounded on its own)

So vendor_share + platform_share == total for every input.

Examples at the default 5% rate:
- 10000 -> platform 500, vendor 9500
- 3     -> 0.15 rounds half-up to 0 -> platform 0, vendor 3
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from orders.services.exceptions import InvalidArgumentError

WHOLE_UNIT = Decimal("1")
MIN_RATE = Decimal("0")
MAX_RATE = Decimal("1")


@dataclass(frozen=True)
class CommissionSplit:
    total: int
    vendor_share: int
    platform_share: int
    rate: Decimal


def _as_rate(value) -> Decimal:
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidArgumentError(f"Invalid commission rate: {value!r}") from exc

    if not rate.is_finite() or rate < MIN_RATE or rate > MAX_RATE:
        raise InvalidArgumentError(f"Commission rate must be within [0, 1], got {rate}")
    return rate


def platform_rate() -> Decimal:
    return _as_rate(getattr(settings, "PLATFORM_COMMISSION_RATE", Decimal("0.05")))


def split_commission(total_amount: int, *, rate=None) -> CommissionSplit:
    if isinstance(total_amount, bool) or not isinstance(total_amount, int):
        raise InvalidArgumentError(
            f"Order total must be an integer of minor units, got {total_amount!r}"
        )
    if total_amount < 0:
        raise InvalidArgumentError(f"Order total cannot be negative: {total_amount}")

    applied_rate = platform_rate() if rate is None else _as_rate(rate)

    platform_share = int(
        (Decimal(total_amount) * applied_rate).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
    )
    vendor_share = total_amount - platform_share

    return CommissionSplit(
        total=total_amount,
        vendor_share=vendor_share,
        platform_share=platform_share,
        rate=applied_rate,
    )
