# earnings/services/reports.py

"""
EARNINGS REPORTS (READ-ONLY)

Aggregations over the ledger projections. Nothing here writes.

Period semantics:
- half-open [start, end) over VendorEarning.completed_at /
  PlatformEarning.recognized_at
- start=None / end=None leaves that side unbounded
- presets resolve in the server's local timezone:
    this_week  -> Monday 00:00
    this_month -> 1st of month 00:00
    this_year  -> Jan 1st 00:00
    all_time   -> unbounded
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from earnings.models import PlatformEarning, VendorEarning
from orders.services.exceptions import InvalidArgumentError
from permissions.roles import ROLE_CUSTOMER, ROLE_VENDOR

PERIOD_THIS_WEEK = "this_week"
PERIOD_THIS_MONTH = "this_month"
PERIOD_THIS_YEAR = "this_year"
PERIOD_ALL_TIME = "all_time"

PERIOD_PRESETS = (
    PERIOD_THIS_WEEK,
    PERIOD_THIS_MONTH,
    PERIOD_THIS_YEAR,
    PERIOD_ALL_TIME,
)

MAX_TREND_MONTHS = 60


@dataclass(frozen=True)
class EarningsSummary:
    total: int
    count: int
    start: datetime | None
    end: datetime | None


def _local_midnight(d) -> datetime:
    tz = timezone.get_current_timezone()
    return timezone.make_aware(datetime.combine(d, time.min), tz)


def period_bounds(preset: str | None, *, now=None) -> tuple[datetime | None, datetime | None]:
    """
    Resolve a preset to (start, end). "This Month" and "this_month" are
    both accepted. Empty / None means all time.
    """
    key = (preset or PERIOD_ALL_TIME).strip().lower().replace(" ", "_").replace("-", "_")
    if key not in PERIOD_PRESETS:
        raise InvalidArgumentError(
            f"Unknown period {preset!r}. Allowed: {', '.join(PERIOD_PRESETS)}"
        )

    if key == PERIOD_ALL_TIME:
        return None, None

    today = timezone.localtime(now or timezone.now()).date()

    if key == PERIOD_THIS_WEEK:
        start_day = today - timedelta(days=today.weekday())
    elif key == PERIOD_THIS_MONTH:
        start_day = today.replace(day=1)
    else:
        start_day = today.replace(month=1, day=1)

    return _local_midnight(start_day), None


def _check_range(start, end):
    if start is not None and end is not None and end < start:
        raise InvalidArgumentError("Period end must not be before its start")


def _summarize(qs, *, field: str, start, end) -> EarningsSummary:
    row = qs.aggregate(total=Sum(field), count=Count("id"))
    return EarningsSummary(
        total=int(row["total"] or 0),
        count=int(row["count"] or 0),
        start=start,
        end=end,
    )


def vendor_earnings_queryset(vendor_id, start=None, end=None):
    _check_range(start, end)

    qs = VendorEarning.objects.filter(vendor_id=vendor_id)
    if start is not None:
        qs = qs.filter(completed_at__gte=start)
    if end is not None:
        qs = qs.filter(completed_at__lt=end)
    return qs.order_by("-completed_at")


def vendor_earnings_in_period(vendor_id, start=None, end=None) -> EarningsSummary:
    qs = vendor_earnings_queryset(vendor_id, start, end)
    return _summarize(qs, field="amount", start=start, end=end)


def platform_earnings_in_period(start=None, end=None) -> EarningsSummary:
    _check_range(start, end)

    qs = PlatformEarning.objects.all()
    if start is not None:
        qs = qs.filter(recognized_at__gte=start)
    if end is not None:
        qs = qs.filter(recognized_at__lt=end)
    return _summarize(qs, field="commission_amount", start=start, end=end)


def platform_earnings_trend(months: int = 12, *, now=None) -> list[dict]:
    """
    Monthly platform commission for the last `months` calendar months
    (current month included), oldest first. Months with no earnings are
    omitted: [{"period": "May 2024", "profit": 150}, ...]
    """
    if isinstance(months, bool) or not isinstance(months, int):
        raise InvalidArgumentError(f"months must be an integer, got {months!r}")
    if months < 1 or months > MAX_TREND_MONTHS:
        raise InvalidArgumentError(f"months must be within 1..{MAX_TREND_MONTHS}")

    today = timezone.localtime(now or timezone.now()).date()
    month_index = today.year * 12 + (today.month - 1) - (months - 1)
    first_month = today.replace(year=month_index // 12, month=month_index % 12 + 1, day=1)

    rows = (
        PlatformEarning.objects.filter(recognized_at__gte=_local_midnight(first_month))
        .annotate(month=TruncMonth("recognized_at"))
        .values("month")
        .annotate(profit=Sum("commission_amount"))
        .order_by("month")
    )

    return [
        {"period": row["month"].strftime("%b %Y"), "profit": int(row["profit"] or 0)}
        for row in rows
    ]


def platform_overview() -> dict:
    User = get_user_model()
    profit = PlatformEarning.objects.aggregate(total=Sum("commission_amount"))["total"]

    return {
        "total_platform_profit": int(profit or 0),
        "total_customers": User.objects.filter(role=ROLE_CUSTOMER).count(),
        "total_vendors": User.objects.filter(role=ROLE_VENDOR).count(),
    }
