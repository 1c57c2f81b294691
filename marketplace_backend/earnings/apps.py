# earnings/apps.py

"""
EARNINGS APP CONFIG

Ledger projections derived from fulfilled orders:
- VendorEarning   (vendor share)
- PlatformEarning (platform commission)
Plus the commission policy and read-only reports.
"""

from django.apps import AppConfig


class EarningsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "earnings"
    verbose_name = "Earnings Ledger"
