# earnings/tests/test_validate_command.py

from __future__ import annotations

from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from earnings.models import PlatformEarning, VendorEarning
from orders.models import Order
from orders.services.reconciliation import transition_order_status
from orders.tests.helpers import make_order, make_parties


class ValidateEarningsLedgerCommandTests(TestCase):
    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()
        self.order = make_order(customer=self.customer, vendor=self.vendor, total=10000, status="in_progress")
        transition_order_status(
            order_id=self.order.pk,
            actor_id=self.vendor.pk,
            actor_role=self.vendor.role,
            target_status="fulfilled",
        )
        self.order.refresh_from_db()

    def _run(self, *args):
        out, err = StringIO(), StringIO()
        call_command("validate_earnings_ledger", *args, stdout=out, stderr=err)
        return out.getvalue(), err.getvalue()

    def test_consistent_ledger_passes_strict(self):
        out, err = self._run("--strict")

        self.assertIn("VALIDATION PASSED", out)
        self.assertEqual(err, "")

    def test_missing_rows_fail_strict(self):
        PlatformEarning.objects.filter(order=self.order).delete()

        with self.assertRaises(SystemExit):
            self._run("--strict")

    def test_repair_restores_missing_rows(self):
        VendorEarning.objects.filter(order=self.order).delete()

        out, _err = self._run("--repair", "--strict")

        self.assertIn("Repaired 1 order(s)", out)
        vendor_row = VendorEarning.objects.get(order=self.order)
        self.assertEqual(vendor_row.amount, 9500)
        self.assertEqual(vendor_row.completed_at, self.order.fulfilled_at)

    def test_repair_fixes_drifted_amounts(self):
        VendorEarning.objects.filter(order=self.order).update(amount=1)

        self._run("--repair")

        self.assertEqual(VendorEarning.objects.get(order=self.order).amount, 9500)

    def test_repair_drops_rows_of_non_fulfilled_orders(self):
        # simulate a crash that moved the order without removing its earnings
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)

        with self.assertRaises(SystemExit):
            self._run("--strict")

        self._run("--repair")

        self.assertFalse(VendorEarning.objects.filter(order=self.order).exists())
        self.assertFalse(PlatformEarning.objects.filter(order=self.order).exists())

    def test_split_that_sums_but_ignores_policy_is_flagged_and_repaired(self):
        VendorEarning.objects.filter(order=self.order).update(amount=9000)
        PlatformEarning.objects.filter(order=self.order).update(commission_amount=1000)

        with self.assertRaises(SystemExit):
            self._run("--strict")

        out, _err = self._run("--repair", "--strict")

        self.assertIn("Repaired 1 order(s)", out)
        self.assertEqual(VendorEarning.objects.get(order=self.order).amount, 9500)
        self.assertEqual(PlatformEarning.objects.get(order=self.order).commission_amount, 500)

    def test_wrong_vendor_or_order_no_is_flagged_and_repaired(self):
        VendorEarning.objects.filter(order=self.order).update(vendor=self.other_vendor)
        PlatformEarning.objects.filter(order=self.order).update(order_no="ORD-BOGUS")

        with self.assertRaises(SystemExit):
            self._run("--strict")

        self._run("--repair")

        vendor_row = VendorEarning.objects.get(order=self.order)
        platform_row = PlatformEarning.objects.get(order=self.order)
        self.assertEqual(vendor_row.vendor_id, self.vendor.pk)
        self.assertEqual(platform_row.order_no, self.order.order_no)

        out, err = self._run("--strict")
        self.assertIn("VALIDATION PASSED", out)
        self.assertEqual(err, "")
