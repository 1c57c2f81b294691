# earnings/urls.py

from django.urls import path

from earnings.views.platform import (
    PlatformEarningsSummaryView,
    PlatformEarningsTrendView,
    PlatformOverviewView,
)
from earnings.views.vendor import VendorEarningListView, VendorEarningsSummaryView

app_name = "earnings"

urlpatterns = [
    path("vendor/", VendorEarningsSummaryView.as_view(), name="vendor-summary"),
    path("vendor/records/", VendorEarningListView.as_view(), name="vendor-records"),
    path("platform/", PlatformEarningsSummaryView.as_view(), name="platform-summary"),
    path("platform/trend/", PlatformEarningsTrendView.as_view(), name="platform-trend"),
    path("platform/overview/", PlatformOverviewView.as_view(), name="platform-overview"),
]
