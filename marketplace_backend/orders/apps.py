# orders/apps.py

"""
ORDERS APP CONFIG

Order lifecycle module:
- Order + line-item snapshots
- Transition rules (pure)
- Status reconciliation engine (drives the earnings ledger)
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"
