# orders/models/order.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    """
    A customer's order for one or more vendor-provided line items.

    GUARANTEES:
    - order_no is assigned once and never reassigned
    - customer, vendor, total_amount and currency are fixed at placement
    - fulfilled_at is stamped once and never cleared (audit trail)
    - status is mutated only by orders.services.reconciliation

    Money is integer minor currency units.
    """

    STATUS_CREATED = "created"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_FULFILLED = "fulfilled"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_CREATED, "Created"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_FULFILLED, "Fulfilled"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated human-readable order number",
    )

    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="orders_placed",
    )

    vendor = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="orders_received",
    )

    vendor_name = models.CharField(max_length=150, blank=True, default="")

    total_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Sum of line totals in minor currency units (fixed at placement)",
    )
    currency = models.CharField(max_length=3, default="PKR")

    status = models.CharField(
        max_length=32, choices=STATUS_CHOICES, default=STATUS_CREATED
    )
    payment_status = models.CharField(
        max_length=32, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING
    )

    shipping_address = models.JSONField(default=dict, blank=True)
    notes_to_vendor = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    fulfilled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["vendor", "status"], name="orders_vendor_status_idx"),
            models.Index(fields=["customer", "created_at"], name="orders_customer_created_idx"),
        ]

    _IMMUTABLE_FIELDS = (
        "order_no",
        "customer_id",
        "vendor_id",
        "total_amount",
        "currency",
    )

    def _validate_immutable(self, previous: "Order"):
        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(
                    f"Order field '{field}' cannot be changed after placement."
                )

        if previous.fulfilled_at and self.fulfilled_at != previous.fulfilled_at:
            raise ValidationError("Order fulfilled_at is set once and never changed.")

    @property
    def is_fulfilled(self) -> bool:
        return self.status == self.STATUS_FULFILLED

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Order.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.order_no:
            prefix = timezone.now().strftime("ORD%Y%m%d")
            self.order_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_no} | {self.total_amount} | {self.status}"
