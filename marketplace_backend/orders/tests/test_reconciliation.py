# orders/tests/test_reconciliation.py

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

from django.db import OperationalError, connection
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings

from earnings.models import PlatformEarning, VendorEarning
from earnings.services import ledger_store
from orders.models import Order
from orders.services.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    OrderNotFoundError,
    OrderStatusError,
    StoreConflictError,
    StoreUnavailableError,
    TransitionForbiddenError,
)
from orders.services.reconciliation import (
    transition_order_status,
    transition_order_status_with_retry,
)
from orders.tests.helpers import make_order, make_parties

FULFIL_TIME = datetime(2024, 5, 15, 10, 30, tzinfo=dt_timezone.utc)


class ReconciliationTestMixin:
    def transition(self, order, target, *, actor=None, role=None, now=FULFIL_TIME):
        actor = actor or self.vendor
        return transition_order_status(
            order_id=order.pk,
            actor_id=actor.pk,
            actor_role=role or actor.role,
            target_status=target,
            now=now,
        )

    def assertEarningPair(self, order, *, vendor_amount, platform_amount):
        self.assertEqual(VendorEarning.objects.filter(order=order).count(), 1)
        self.assertEqual(PlatformEarning.objects.filter(order=order).count(), 1)

        vendor_row = VendorEarning.objects.get(order=order)
        platform_row = PlatformEarning.objects.get(order=order)

        self.assertEqual(vendor_row.amount, vendor_amount)
        self.assertEqual(platform_row.commission_amount, platform_amount)
        self.assertEqual(vendor_row.amount + platform_row.commission_amount, order.total_amount)
        return vendor_row, platform_row

    def assertNoEarnings(self, order):
        self.assertFalse(VendorEarning.objects.filter(order_id=order.pk).exists())
        self.assertFalse(PlatformEarning.objects.filter(order_id=order.pk).exists())


class FulfilmentTests(ReconciliationTestMixin, TestCase):
    """
    GUARANTEES:
    - Entering fulfilled writes exactly one vendor + platform row
    - Shares always sum to the order total
    - Re-applying fulfilled changes nothing
    """

    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()

    def test_fulfil_records_vendor_and_platform_share(self):
        order = make_order(customer=self.customer, vendor=self.vendor, total=10000, status="in_progress")

        result = self.transition(order, "fulfilled")

        self.assertEqual(result.status, Order.STATUS_FULFILLED)
        self.assertEqual(result.fulfilled_at, FULFIL_TIME)
        self.assertEqual(result.payment_status, Order.PAYMENT_PAID)

        vendor_row, platform_row = self.assertEarningPair(
            result, vendor_amount=9500, platform_amount=500
        )
        self.assertEqual(vendor_row.vendor_id, self.vendor.pk)
        self.assertEqual(vendor_row.order_no, result.order_no)
        self.assertEqual(vendor_row.offering_names, ["Tailored suit"])
        self.assertEqual(vendor_row.completed_at, FULFIL_TIME)
        self.assertEqual(vendor_row.earning_month, "2024-05")
        self.assertEqual(platform_row.recognized_at, FULFIL_TIME)
        self.assertEqual(platform_row.commission_rate, Decimal("0.0500"))

    def test_tiny_total_rounds_platform_share_half_up(self):
        order = make_order(customer=self.customer, vendor=self.vendor, total=3, status="in_progress")

        self.transition(order, "fulfilled")

        self.assertEarningPair(order, vendor_amount=3, platform_amount=0)

    def test_refulfil_is_idempotent(self):
        order = make_order(customer=self.customer, vendor=self.vendor, total=10000, status="in_progress")

        first = self.transition(order, "fulfilled")
        vendor_before, platform_before = self.assertEarningPair(first, vendor_amount=9500, platform_amount=500)

        later = FULFIL_TIME + timedelta(days=2)
        second = self.transition(order, "fulfilled", now=later)

        self.assertEqual(second.status, Order.STATUS_FULFILLED)
        self.assertEqual(second.fulfilled_at, FULFIL_TIME)

        vendor_after, platform_after = self.assertEarningPair(second, vendor_amount=9500, platform_amount=500)
        self.assertEqual(vendor_after.pk, vendor_before.pk)
        self.assertEqual(platform_after.pk, platform_before.pk)
        self.assertEqual(vendor_after.completed_at, FULFIL_TIME)
        self.assertEqual(platform_after.recognized_at, FULFIL_TIME)

    def test_reapplying_non_fulfilled_state_writes_no_earnings(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

        result = self.transition(order, "in_progress")

        self.assertEqual(result.status, Order.STATUS_IN_PROGRESS)
        self.assertNoEarnings(order)

    def test_full_happy_path(self):
        order = make_order(customer=self.customer, vendor=self.vendor, total=2500)

        self.transition(order, "in_progress")
        self.assertNoEarnings(order)

        result = self.transition(order, "fulfilled")
        self.assertEarningPair(result, vendor_amount=2375, platform_amount=125)

    def test_logs_transition(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

        with self.assertLogs("orders.services.reconciliation", level="INFO") as logs:
            self.transition(order, "fulfilled")

        self.assertIn("Order status transitioned", logs.output[0])


class ReversalTests(ReconciliationTestMixin, TestCase):
    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()
        self.order = make_order(customer=self.customer, vendor=self.vendor, total=10000, status="in_progress")
        self.transition(self.order, "fulfilled")

    def test_cancel_after_fulfil_removes_earnings_and_keeps_audit_timestamp(self):
        result = self.transition(self.order, "cancelled")

        self.assertEqual(result.status, Order.STATUS_CANCELLED)
        self.assertEqual(result.fulfilled_at, FULFIL_TIME)
        self.assertNoEarnings(result)

    def test_cancelled_is_terminal(self):
        self.transition(self.order, "cancelled")

        for target in ("cancelled", "fulfilled", "in_progress", "created"):
            with self.subTest(target=target):
                with self.assertRaises(InvalidTransitionError):
                    self.transition(self.order, target)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertNoEarnings(self.order)

    def test_reversal_tolerates_already_missing_rows(self):
        # a previous partial run removed the rows but never wrote the order
        VendorEarning.objects.filter(order=self.order).delete()

        result = self.transition(self.order, "cancelled")

        self.assertEqual(result.status, Order.STATUS_CANCELLED)
        self.assertNoEarnings(result)

    def test_cancel_before_fulfil_has_no_ledger_effect(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="created")

        result = self.transition(order, "cancelled")

        self.assertEqual(result.status, Order.STATUS_CANCELLED)
        self.assertIsNone(result.fulfilled_at)
        self.assertNoEarnings(order)


class RejectionTests(ReconciliationTestMixin, TestCase):
    """
    GUARANTEES:
    - Rejected calls never change the order or the ledger
    - InvalidArgument is reported before NotFound, NotFound before Forbidden
    """

    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()

    def test_created_to_fulfilled_is_rejected_without_writes(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="created")

        with self.assertRaises(InvalidTransitionError):
            self.transition(order, "fulfilled")

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CREATED)
        self.assertIsNone(order.fulfilled_at)
        self.assertNoEarnings(order)

    def test_other_vendor_is_forbidden(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

        with self.assertRaises(TransitionForbiddenError):
            self.transition(order, "fulfilled", actor=self.other_vendor)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_IN_PROGRESS)
        self.assertNoEarnings(order)

    def test_non_vendor_roles_are_forbidden(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

        for actor in (self.customer, self.admin):
            with self.subTest(role=actor.role):
                with self.assertRaises(TransitionForbiddenError):
                    self.transition(order, "fulfilled", actor=actor)

    def test_vendor_id_with_wrong_role_is_forbidden(self):
        order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

        with self.assertRaises(TransitionForbiddenError):
            self.transition(order, "fulfilled", role="customer")

    def test_unknown_order_is_not_found(self):
        order = Order(pk=uuid.uuid4())

        with self.assertRaises(OrderNotFoundError):
            self.transition(order, "fulfilled")

    def test_malformed_order_id_is_not_found(self):
        with self.assertRaises(OrderNotFoundError):
            transition_order_status(
                order_id="not-a-uuid",
                actor_id=self.vendor.pk,
                actor_role="vendor",
                target_status="fulfilled",
            )

    def test_unknown_status_is_invalid_argument_before_lookup(self):
        with self.assertRaises(InvalidArgumentError):
            transition_order_status(
                order_id=uuid.uuid4(),
                actor_id=self.vendor.pk,
                actor_role="vendor",
                target_status="shipped",
            )

    def test_not_found_is_reported_before_forbidden(self):
        with self.assertRaises(OrderNotFoundError):
            transition_order_status(
                order_id=uuid.uuid4(),
                actor_id=self.customer.pk,
                actor_role="customer",
                target_status="fulfilled",
            )


class StoreFailureTests(ReconciliationTestMixin, TestCase):
    """
    GUARANTEES:
    - A ledger write failure leaves the order status and the ledger untouched
    - Lock conflicts surface as StoreConflictError, outages as StoreUnavailableError
    """

    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()
        self.order = make_order(customer=self.customer, vendor=self.vendor, status="in_progress")

    def test_platform_write_failure_rolls_back_vendor_row_and_status(self):
        with patch.object(
            ledger_store,
            "upsert_platform_earning",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(StoreConflictError) as ctx:
                self.transition(self.order, "fulfilled")

        self.assertTrue(ctx.exception.retryable)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_IN_PROGRESS)
        self.assertIsNone(self.order.fulfilled_at)
        self.assertNoEarnings(self.order)

        # retrying the same call now succeeds
        result = self.transition(self.order, "fulfilled")
        self.assertEarningPair(result, vendor_amount=9500, platform_amount=500)

    def test_order_write_failure_is_unavailable_and_leaves_order_unchanged(self):
        with patch.object(
            ledger_store,
            "write_order_status",
            side_effect=OperationalError("could not connect to server"),
        ):
            with self.assertRaises(StoreUnavailableError):
                self.transition(self.order, "fulfilled")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_IN_PROGRESS)
        self.assertNoEarnings(self.order)

    def test_order_deleted_mid_transition_is_not_found(self):
        with patch.object(ledger_store, "write_order_status", return_value=False):
            with self.assertRaises(OrderNotFoundError):
                self.transition(self.order, "fulfilled")

        self.assertNoEarnings(self.order)

    def test_concurrent_insert_turns_into_update(self):
        # another writer already inserted the vendor row, invisible to our first read
        VendorEarning.objects.create(
            order=self.order,
            order_no=self.order.order_no,
            vendor=self.vendor,
            amount=1,
            completed_at=FULFIL_TIME,
        )

        real_find = ledger_store._find_locked
        hidden = {"done": False}

        def find_once_hidden(model, *, order_id):
            if model is VendorEarning and not hidden["done"]:
                hidden["done"] = True
                return None
            return real_find(model, order_id=order_id)

        with patch.object(ledger_store, "_find_locked", side_effect=find_once_hidden):
            result = self.transition(self.order, "fulfilled")

        self.assertTrue(hidden["done"])
        self.assertEarningPair(result, vendor_amount=9500, platform_amount=500)


class LedgerInvariantTests(ReconciliationTestMixin, TestCase):
    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()

    def test_every_fulfilled_order_has_exactly_one_balanced_pair(self):
        totals = [0, 1, 3, 9, 10, 11, 19, 20, 29, 30, 999, 10001, 123457]
        orders = [
            make_order(customer=self.customer, vendor=self.vendor, total=total, status="in_progress")
            for total in totals
        ]

        for order in orders:
            self.transition(order, "fulfilled")
        self.transition(orders[0], "cancelled")

        for order in Order.objects.filter(status=Order.STATUS_FULFILLED):
            with self.subTest(total=order.total_amount):
                vendor_row = VendorEarning.objects.get(order=order)
                platform_row = PlatformEarning.objects.get(order=order)
                self.assertEqual(vendor_row.amount + platform_row.commission_amount, order.total_amount)

        self.assertEqual(VendorEarning.objects.count(), len(totals) - 1)
        self.assertEqual(PlatformEarning.objects.count(), len(totals) - 1)


class RetryWrapperTests(SimpleTestCase):
    KWARGS = {
        "order_id": uuid.uuid4(),
        "actor_id": uuid.uuid4(),
        "actor_role": "vendor",
        "target_status": "fulfilled",
    }

    @patch("orders.services.reconciliation.transition_order_status")
    def test_retries_retryable_errors_then_succeeds(self, mocked):
        mocked.side_effect = [StoreConflictError("locked"), StoreUnavailableError("down"), "order"]

        result = transition_order_status_with_retry(**self.KWARGS)

        self.assertEqual(result, "order")
        self.assertEqual(mocked.call_count, 3)

    @patch("orders.services.reconciliation.transition_order_status")
    def test_gives_up_after_configured_attempts(self, mocked):
        mocked.side_effect = StoreConflictError("locked")

        with self.assertRaises(StoreConflictError):
            transition_order_status_with_retry(attempts=2, **self.KWARGS)

        self.assertEqual(mocked.call_count, 2)

    @patch("orders.services.reconciliation.transition_order_status")
    def test_terminal_errors_are_not_retried(self, mocked):
        mocked.side_effect = InvalidTransitionError("nope")

        with self.assertRaises(InvalidTransitionError):
            transition_order_status_with_retry(**self.KWARGS)

        self.assertEqual(mocked.call_count, 1)


class RetryInsideTransactionTests(TestCase):
    @patch("orders.services.reconciliation.transition_order_status")
    def test_no_retry_inside_caller_transaction(self, mocked):
        # TestCase wraps each test in a transaction
        mocked.side_effect = StoreConflictError("locked")

        with self.assertRaises(StoreConflictError):
            transition_order_status_with_retry(**RetryWrapperTests.KWARGS)

        self.assertEqual(mocked.call_count, 1)


@override_settings(ORDER_TRANSITION_RETRY_ATTEMPTS=25, ORDER_TRANSITION_RETRY_BACKOFF_SECONDS=0.02)
class ConcurrentFulfilmentTests(ReconciliationTestMixin, TransactionTestCase):
    """
    Several sessions of the same vendor fulfil the same order at once.

    The order row lock (or, on SQLite, the table lock) serializes them and the
    retry wrapper absorbs lock conflicts: exactly one earning pair results.
    """

    ROUNDS = 3
    WORKERS = 4

    def setUp(self):
        self.customer, self.vendor, self.other_vendor, self.admin = make_parties()

    def _race(self, order):
        barrier = threading.Barrier(self.WORKERS)
        results = []
        errors = []

        def worker():
            try:
                barrier.wait()
                results.append(
                    transition_order_status_with_retry(
                        order_id=order.pk,
                        actor_id=self.vendor.pk,
                        actor_role=self.vendor.role,
                        target_status="fulfilled",
                        now=FULFIL_TIME,
                    )
                )
            except Exception as exc:  # collected for the main thread
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(self.WORKERS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results, errors

    def test_parallel_fulfilment_yields_single_pair(self):
        for round_no in range(self.ROUNDS):
            with self.subTest(round=round_no):
                order = make_order(customer=self.customer, vendor=self.vendor, total=10000, status="in_progress")

                results, errors = self._race(order)

                # a caller may only lose on a retry-safe conflict
                for exc in errors:
                    self.assertIsInstance(exc, OrderStatusError)
                    self.assertTrue(exc.retryable, repr(exc))
                self.assertGreaterEqual(len(results), 1)

                order.refresh_from_db()
                self.assertEqual(order.status, Order.STATUS_FULFILLED)
                self.assertEqual(order.fulfilled_at, FULFIL_TIME)
                self.assertEqual(VendorEarning.objects.filter(order=order).count(), 1)
                self.assertEqual(PlatformEarning.objects.filter(order=order).count(), 1)
                self.assertEarningPair(order, vendor_amount=9500, platform_amount=500)
