# earnings/management/commands/validate_earnings_ledger.py

from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db import transaction

from earnings.models import PlatformEarning, VendorEarning
from earnings.services import ledger_store
from earnings.services.commission_policy import split_commission
from orders.models import Order
from orders.services.exceptions import InvalidArgumentError


class Command(BaseCommand):
    help = (
        "Validate Order → Earnings consistency "
        "(one vendor + platform row per fulfilled order, shares match its commission split)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any problem is found.",
        )
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Re-derive earnings for fulfilled orders and drop rows of non-fulfilled ones.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        repair = bool(options.get("repair"))

        fulfilled_qs = Order.objects.filter(status=Order.STATUS_FULFILLED)

        self.stdout.write(self.style.MIGRATE_HEADING("Order → Earnings Validation"))
        self.stdout.write(f"Fulfilled orders: {fulfilled_qs.count()}")
        self.stdout.write("")

        # -----------------------------
        # 1) Fulfilled orders → both rows present and equal to a fresh derivation
        # -----------------------------
        missing = []
        mismatched = []

        for order in fulfilled_qs.select_related("vendor_earning", "platform_earning"):
            vendor_row = getattr(order, "vendor_earning", None)
            platform_row = getattr(order, "platform_earning", None)

            if vendor_row is None or platform_row is None:
                missing.append(order)
                continue

            if self._disagrees(order, vendor_row, platform_row):
                mismatched.append(order)

        # -----------------------------
        # 2) Rows whose order is not fulfilled (stale after a reversal)
        # -----------------------------
        stale_ids = set(
            VendorEarning.objects.exclude(order__status=Order.STATUS_FULFILLED).values_list("order_id", flat=True)
        ) | set(
            PlatformEarning.objects.exclude(order__status=Order.STATUS_FULFILLED).values_list("order_id", flat=True)
        )

        errors = len(missing) + len(mismatched) + len(stale_ids)

        if missing:
            self.stderr.write(self.style.ERROR(f"[FAIL] Fulfilled orders missing earnings: {len(missing)}"))
            self.stderr.write("  Example: " + ", ".join(o.order_no for o in missing[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every fulfilled order has its earning pair"))

        if mismatched:
            self.stderr.write(self.style.ERROR(f"[FAIL] Earnings disagreeing with their order: {len(mismatched)}"))
            self.stderr.write("  Example: " + ", ".join(o.order_no for o in mismatched[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Earnings match the commission split of their order"))

        if stale_ids:
            self.stderr.write(self.style.ERROR(f"[FAIL] Earnings on non-fulfilled orders: {len(stale_ids)}"))
            self.stderr.write("  Example IDs: " + ", ".join(str(i) for i in list(stale_ids)[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] No earnings on non-fulfilled orders"))

        if repair and errors:
            repaired = self._repair(missing + mismatched, stale_ids)
            self.stdout.write(self.style.WARNING(f"Repaired {repaired} order(s)"))
            errors = 0

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    @staticmethod
    def _expected_split(order, platform_row=None):
        # keep the rate the commission was first recognized at
        rate = platform_row.commission_rate if platform_row is not None else None
        try:
            return split_commission(int(order.total_amount), rate=rate)
        except InvalidArgumentError:
            return split_commission(int(order.total_amount))

    def _disagrees(self, order, vendor_row, platform_row) -> bool:
        expected = self._expected_split(order, platform_row)

        return (
            vendor_row.amount != expected.vendor_share
            or platform_row.commission_amount != expected.platform_share
            or vendor_row.vendor_id != order.vendor_id
            or platform_row.vendor_id != order.vendor_id
            or vendor_row.order_no != order.order_no
            or platform_row.order_no != order.order_no
            or vendor_row.completed_at != order.fulfilled_at
            or platform_row.recognized_at != order.fulfilled_at
        )

    def _repair(self, orders, stale_ids) -> int:
        repaired = 0

        for order in orders:
            with transaction.atomic():
                locked = ledger_store.lock_order(order.pk)
                if locked is None or not locked.is_fulfilled:
                    continue

                _vendor_row, platform_row = ledger_store.get_earnings_for_order(locked.pk)
                split = self._expected_split(locked, platform_row)

                ledger_store.upsert_vendor_earning(order=locked, split=split, completed_at=locked.fulfilled_at)
                ledger_store.upsert_platform_earning(order=locked, split=split, recognized_at=locked.fulfilled_at)
            repaired += 1

        for order_id in stale_ids:
            with transaction.atomic():
                locked = ledger_store.lock_order(order_id)
                if locked is None or locked.is_fulfilled:
                    continue
                ledger_store.delete_earnings_for_order(order_id=order_id)
            repaired += 1

        return repaired

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
