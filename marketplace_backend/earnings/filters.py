# earnings/filters.py

import django_filters

from earnings.models import VendorEarning


class VendorEarningFilter(django_filters.FilterSet):
    """
    completed_from is inclusive, completed_to exclusive (same [start, end)
    convention as the period reports).
    """

    completed_from = django_filters.IsoDateTimeFilter(field_name="completed_at", lookup_expr="gte")
    completed_to = django_filters.IsoDateTimeFilter(field_name="completed_at", lookup_expr="lt")
    month = django_filters.CharFilter(field_name="earning_month")
    order_no = django_filters.CharFilter(field_name="order_no", lookup_expr="iexact")

    class Meta:
        model = VendorEarning
        fields = ["completed_from", "completed_to", "month", "order_no"]
