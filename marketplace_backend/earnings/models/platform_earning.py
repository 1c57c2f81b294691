# earnings/models/platform_earning.py

"""
PLATFORM EARNING (LEDGER PROJECTION)

The platform's commission on one fulfilled order. Written in lock-step with
VendorEarning; vendor.amount + commission_amount == order.total_amount.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models


class PlatformEarning(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="platform_earning",
    )
    order_no = models.CharField(max_length=64)

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="platform_commissions",
        help_text="Vendor whose order generated the commission (attribution)",
    )

    commission_amount = models.PositiveBigIntegerField(
        help_text="Platform share in minor currency units",
    )
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        help_text="Rate applied when the commission was computed (snapshot)",
    )

    recognized_at = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-recognized_at"]
        indexes = [
            models.Index(fields=["recognized_at"], name="platform_earning_ts_idx"),
            models.Index(fields=["vendor"], name="platform_earning_vendor_idx"),
        ]

    def __str__(self):
        return f"{self.order_no} | commission {self.commission_amount}"
