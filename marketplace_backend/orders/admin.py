# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "offering_id",
        "offering_name",
        "unit_price",
        "quantity",
        "line_total",
    )


# ======================================================
# ORDER ADMIN
# ======================================================


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_no",
        "vendor_name",
        "status",
        "payment_status",
        "total_amount",
        "currency",
        "created_at",
        "fulfilled_at",
    )
    # status changes go through the reconciliation engine only
    readonly_fields = (
        "order_no",
        "customer",
        "vendor",
        "total_amount",
        "currency",
        "status",
        "payment_status",
        "created_at",
        "updated_at",
        "fulfilled_at",
    )
    search_fields = ("order_no", "vendor_name")
    list_filter = ("status", "payment_status", "created_at")
    inlines = [OrderItemInline]
