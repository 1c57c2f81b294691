# earnings/admin.py

from django.contrib import admin

from earnings.models import PlatformEarning, VendorEarning


# ======================================================
# LEDGER PROJECTIONS (READ-ONLY IN ADMIN)
# ======================================================
# Rows are owned by the reconciliation engine; admin edits would break
# vendor amount + commission == order total.


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(VendorEarning)
class VendorEarningAdmin(ReadOnlyLedgerAdmin):
    list_display = ("order_no", "vendor", "amount", "earning_month", "completed_at")
    search_fields = ("order_no", "vendor__email")
    list_filter = ("earning_month",)


@admin.register(PlatformEarning)
class PlatformEarningAdmin(ReadOnlyLedgerAdmin):
    list_display = (
        "order_no",
        "vendor",
        "commission_amount",
        "commission_rate",
        "recognized_at",
    )
    search_fields = ("order_no", "vendor__email")
    list_filter = ("recognized_at",)
