# earnings/views/vendor.py

"""
VENDOR EARNINGS (OWN LEDGER ONLY)

- GET /api/earnings/vendor/?period=this_month
    records + total for a period preset
- GET /api/earnings/vendor/records/?completed_from=&completed_to=
    paginated, filterable listing
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from earnings.filters import VendorEarningFilter
from earnings.serializers import VendorEarningSerializer
from earnings.services.reports import (
    PERIOD_ALL_TIME,
    period_bounds,
    vendor_earnings_in_period,
    vendor_earnings_queryset,
)
from orders.services.exceptions import InvalidArgumentError
from orders.views.status import order_error_response
from permissions.roles import CAP_EARNINGS_VIEW_OWN, HasCapability


class VendorEarningsSummaryView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_EARNINGS_VIEW_OWN

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="period",
                type=OpenApiTypes.STR,
                required=False,
                enum=["this_week", "this_month", "this_year", "all_time"],
                description="Period preset (server timezone). Defaults to all_time.",
            )
        ],
        description="Vendor's own earning records and their total for a period.",
    )
    def get(self, request):
        period = request.query_params.get("period") or PERIOD_ALL_TIME

        try:
            start, end = period_bounds(period)
            summary = vendor_earnings_in_period(request.user.pk, start, end)
        except InvalidArgumentError as exc:
            return order_error_response(exc)

        records = vendor_earnings_queryset(request.user.pk, start, end)

        return Response(
            {
                "period": period,
                "start": start,
                "end": end,
                "count": summary.count,
                "total_earnings_in_period": summary.total,
                "earnings": VendorEarningSerializer(records, many=True).data,
            }
        )


class VendorEarningListView(generics.ListAPIView):
    serializer_class = VendorEarningSerializer
    filterset_class = VendorEarningFilter
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_EARNINGS_VIEW_OWN

    def get_queryset(self):
        return vendor_earnings_queryset(self.request.user.pk)
