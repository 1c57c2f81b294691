import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="VendorEarning",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("order_no", models.CharField(max_length=64)),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Vendor share in minor currency units"
                    ),
                ),
                ("offering_names", models.JSONField(blank=True, default=list)),
                ("completed_at", models.DateTimeField()),
                (
                    "earning_month",
                    models.CharField(
                        blank=True,
                        help_text="YYYY-MM bucket derived from completed_at",
                        max_length=7,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="vendor_earning",
                        to="orders.order",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="vendor_earnings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-completed_at"],
                "indexes": [
                    models.Index(
                        fields=["vendor", "completed_at"],
                        name="vendor_earning_vendor_ts_idx",
                    ),
                    models.Index(fields=["earning_month"], name="vendor_earning_month_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PlatformEarning",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("order_no", models.CharField(max_length=64)),
                (
                    "commission_amount",
                    models.PositiveBigIntegerField(
                        help_text="Platform share in minor currency units"
                    ),
                ),
                (
                    "commission_rate",
                    models.DecimalField(
                        decimal_places=4,
                        help_text="Rate applied when the commission was computed (snapshot)",
                        max_digits=5,
                    ),
                ),
                ("recognized_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="platform_earning",
                        to="orders.order",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        help_text="Vendor whose order generated the commission (attribution)",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="platform_commissions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-recognized_at"],
                "indexes": [
                    models.Index(fields=["recognized_at"], name="platform_earning_ts_idx"),
                    models.Index(fields=["vendor"], name="platform_earning_vendor_idx"),
                ],
            },
        ),
    ]
