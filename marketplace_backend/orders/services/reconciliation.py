"""
======================================================
PATH: orders/services/reconciliation.py
======================================================
ORDER STATUS RECONCILIATION ENGINE

The sole mutating entry point for order status:

    transition_order_status(order_id, actor_id, actor_role, target_status)

FLOW (one transaction, order row locked throughout):
1) Normalize target status            -> InvalidArgumentError
2) Lock + read order                  -> OrderNotFoundError
3) Authorize (owning vendor only)     -> TransitionForbiddenError
4) Validate lifecycle edge            -> InvalidTransitionError (no writes)
5) Entering fulfilled: stamp fulfilled_at once, split commission,
   upsert VendorEarning + PlatformEarning
6) fulfilled -> cancelled (reversal): delete both earning rows (absence ok)
7) Write the order row LAST (conditional update; vanished -> NotFound)

Ledger rows are written before the order row, so a failure at any point
leaves the order in its prior status and a re-run re-confirms the ledger.
Re-applying the same target is safe: upserts and deletes are idempotent.

Database failures surface as StoreConflictError / StoreUnavailableError,
both retry-safe for the whole call.
"""

from __future__ import annotations

import logging
import time
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from earnings.services import ledger_store
from earnings.services.commission_policy import split_commission
from orders.models import Order
from orders.services.exceptions import (
    OrderNotFoundError,
    OrderStatusError,
    TransitionForbiddenError,
)
from orders.services.order_lifecycle import (
    is_reversal,
    normalize_status,
    validate_transition,
)
from permissions.roles import ROLE_VENDOR

logger = logging.getLogger(__name__)

LEDGER_RECORDED = "recorded"
LEDGER_REVERSED = "reversed"
LEDGER_UNTOUCHED = "untouched"


def _parse_order_id(order_id):
    if isinstance(order_id, uuid.UUID):
        return order_id
    try:
        return uuid.UUID(str(order_id))
    except (ValueError, TypeError, AttributeError):
        return None


def _authorize(*, order: Order, actor_id, actor_role):
    if actor_role != ROLE_VENDOR:
        raise TransitionForbiddenError(
            f"Role '{actor_role}' cannot change order status; only the order's vendor can."
        )

    if str(order.vendor_id) != str(actor_id):
        raise TransitionForbiddenError(
            f"Actor {actor_id} is not the vendor of order {order.order_no}."
        )


def _apply_transition(*, order_id, actor_id, actor_role, target: str, now):
    order = ledger_store.lock_order(order_id)
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found.")

    _authorize(order=order, actor_id=actor_id, actor_role=actor_role)
    validate_transition(order=order, target_status=target)

    previous = order.status
    fields = {"status": target}
    ledger_action = LEDGER_UNTOUCHED

    if target == Order.STATUS_FULFILLED:
        fulfilled_at = order.fulfilled_at or now
        split = split_commission(int(order.total_amount))

        ledger_store.upsert_vendor_earning(
            order=order,
            split=split,
            completed_at=fulfilled_at,
        )
        ledger_store.upsert_platform_earning(
            order=order,
            split=split,
            recognized_at=fulfilled_at,
        )

        fields["fulfilled_at"] = fulfilled_at
        fields["payment_status"] = Order.PAYMENT_PAID
        ledger_action = LEDGER_RECORDED

    elif is_reversal(from_status=previous, to_status=target):
        ledger_store.delete_earnings_for_order(order_id=order.pk)
        ledger_action = LEDGER_REVERSED

    # order row last: never ahead of the ledger
    if not ledger_store.write_order_status(order_id=order.pk, **fields):
        raise OrderNotFoundError(f"Order {order_id} was deleted during the transition.")

    order.refresh_from_db()
    return order, previous, ledger_action


def transition_order_status(
    *,
    order_id,
    actor_id,
    actor_role: str,
    target_status: str,
    now=None,
) -> Order:
    """
    Advance an order's status and keep its earning projections consistent.

    Returns the updated Order. Raises an OrderStatusError subclass otherwise;
    on any error the order's stored status is unchanged.
    """
    target = normalize_status(target_status)

    parsed_id = _parse_order_id(order_id)
    if parsed_id is None:
        raise OrderNotFoundError(f"Order {order_id} not found.")

    now = now or timezone.now()

    with ledger_store.store_errors(operation="transition_order_status", order_id=parsed_id):
        with transaction.atomic():
            order, previous, ledger_action = _apply_transition(
                order_id=parsed_id,
                actor_id=actor_id,
                actor_role=actor_role,
                target=target,
                now=now,
            )

    logger.info(
        "Order status transitioned",
        extra={
            "order_id": str(order.pk),
            "order_no": order.order_no,
            "from_status": previous,
            "to_status": target,
            "ledger": ledger_action,
        },
    )
    return order


def transition_order_status_with_retry(*, attempts: int | None = None, **kwargs) -> Order:
    """
    Re-invoke transition_order_status on retry-safe errors
    (StoreConflictError / StoreUnavailableError) with linear backoff.

    Never retries inside a caller's transaction: the failed statement has
    already poisoned that transaction, so the error is raised immediately.
    """
    max_attempts = attempts or getattr(settings, "ORDER_TRANSITION_RETRY_ATTEMPTS", 3)
    max_attempts = max(1, int(max_attempts))

    if transaction.get_connection().in_atomic_block:
        max_attempts = 1

    backoff = float(getattr(settings, "ORDER_TRANSITION_RETRY_BACKOFF_SECONDS", 0.0))

    attempt = 1
    while True:
        try:
            return transition_order_status(**kwargs)
        except OrderStatusError as exc:
            if not exc.retryable or attempt >= max_attempts:
                raise

            logger.warning(
                "Retrying order status transition",
                extra={
                    "order_id": str(kwargs.get("order_id")),
                    "attempt": attempt,
                    "error_code": exc.code,
                },
            )
            if backoff > 0:
                time.sleep(backoff * attempt)
            attempt += 1
