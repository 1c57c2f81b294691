# earnings/models/vendor_earning.py

"""
======================================================
PATH: earnings/models/vendor_earning.py
======================================================
VENDOR EARNING (LEDGER PROJECTION)

The vendor's share of one fulfilled order.

Guarantees:
- At most one row per order (OneToOne on order)
- Written only by earnings.services.ledger_store (upsert / delete)
- Not a source of truth: always re-derivable from the order
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class VendorEarning(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="vendor_earning",
    )
    order_no = models.CharField(max_length=64)

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="vendor_earnings",
    )

    amount = models.PositiveBigIntegerField(
        help_text="Vendor share in minor currency units",
    )
    offering_names = models.JSONField(default=list, blank=True)

    completed_at = models.DateTimeField()
    earning_month = models.CharField(
        max_length=7,
        blank=True,
        help_text="YYYY-MM bucket derived from completed_at",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-completed_at"]
        indexes = [
            models.Index(fields=["vendor", "completed_at"], name="vendor_earning_vendor_ts_idx"),
            models.Index(fields=["earning_month"], name="vendor_earning_month_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.completed_at:
            self.earning_month = timezone.localtime(self.completed_at).strftime("%Y-%m")
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "completed_at" in update_fields:
                kwargs["update_fields"] = {*update_fields, "earning_month"}
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_no} | vendor {self.amount}"
