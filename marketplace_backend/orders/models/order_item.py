# orders/models/order_item.py

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class OrderItem(models.Model):
    """
    Immutable line-item snapshot captured at order placement.

    Price and name are copied from the catalog once; later catalog edits
    never reach an existing order.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    offering_id = models.CharField(max_length=64)
    offering_name = models.CharField(max_length=255)

    unit_price = models.PositiveBigIntegerField(
        help_text="Unit price in minor currency units (snapshot)",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    line_total = models.PositiveBigIntegerField(
        default=0,
        help_text="quantity * unit_price (server computed)",
    )

    class Meta:
        ordering = ["id"]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError("quantity must be >= 1")

        if self.unit_price is None or int(self.unit_price) < 0:
            raise ValidationError("unit_price must be >= 0")

        if not (self.offering_name or "").strip():
            raise ValidationError("offering_name is required")

        self.line_total = int(self.quantity) * int(self.unit_price)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items are snapshots and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.offering_name} x{self.quantity}"
