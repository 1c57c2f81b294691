# earnings/views/platform.py

"""
PLATFORM EARNINGS (ADMIN)

Commission totals, the monthly trend chart and the dashboard overview.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from earnings.serializers import EarningsTrendPointSerializer, PlatformOverviewSerializer
from earnings.services.reports import (
    PERIOD_ALL_TIME,
    period_bounds,
    platform_earnings_in_period,
    platform_earnings_trend,
    platform_overview,
)
from orders.services.exceptions import InvalidArgumentError
from orders.views.status import order_error_response
from permissions.roles import CAP_EARNINGS_VIEW_PLATFORM, HasCapability


class PlatformCapabilityMixin:
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_EARNINGS_VIEW_PLATFORM


class PlatformEarningsSummaryView(PlatformCapabilityMixin, APIView):
    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="period",
                type=OpenApiTypes.STR,
                required=False,
                description="this_week | this_month | this_year | all_time (default)",
            )
        ],
        description="Total platform commission for a period.",
    )
    def get(self, request):
        period = request.query_params.get("period") or PERIOD_ALL_TIME

        try:
            start, end = period_bounds(period)
            summary = platform_earnings_in_period(start, end)
        except InvalidArgumentError as exc:
            return order_error_response(exc)

        return Response(
            {
                "period": period,
                "start": start,
                "end": end,
                "count": summary.count,
                "total_commission_in_period": summary.total,
            }
        )


class PlatformEarningsTrendView(PlatformCapabilityMixin, APIView):
    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="months",
                type=OpenApiTypes.INT,
                required=False,
                description="Number of calendar months including the current one (default 12).",
            )
        ],
        responses={200: EarningsTrendPointSerializer(many=True)},
        description="Monthly platform commission, oldest month first.",
    )
    def get(self, request):
        raw = request.query_params.get("months") or "12"

        try:
            if not raw.strip().isdigit():
                raise InvalidArgumentError(f"months must be a positive integer, got {raw!r}")
            trend = platform_earnings_trend(int(raw))
        except InvalidArgumentError as exc:
            return order_error_response(exc)

        return Response(EarningsTrendPointSerializer(trend, many=True).data)


class PlatformOverviewView(PlatformCapabilityMixin, APIView):
    @extend_schema(
        responses={200: PlatformOverviewSerializer},
        description="Total platform profit with customer and vendor counts.",
    )
    def get(self, request):
        return Response(PlatformOverviewSerializer(platform_overview()).data)
