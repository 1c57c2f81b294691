# earnings/services/ledger_store.py

"""
======================================================
PATH: earnings/services/ledger_store.py
======================================================
LEDGER STORE (ACCESS LAYER)

This module is the ONLY place allowed to:
- Create / update / delete VendorEarning and PlatformEarning rows
- Take the per-order row lock used by status transitions
- Write the order status row on behalf of the reconciliation engine
- Translate database failures into retry-classified domain errors

UPSERT CONTRACT (create-if-absent-else-update):
- Never produces two earning rows for one order
- A concurrent writer that wins the unique constraint first turns our
  create into an update (the single write retries, not the whole call)

All functions that read-for-update must run inside transaction.atomic
(the public ones are decorated; nesting becomes a savepoint).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

from django.db import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    transaction,
)
from django.utils import timezone

from earnings.models import PlatformEarning, VendorEarning
from earnings.services.commission_policy import CommissionSplit
from orders.models import Order
from orders.services.exceptions import StoreConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
LOCK_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}
LOCK_CONFLICT_MESSAGES = (
    "database is locked",
    "database table is locked",
    "could not obtain lock",
    "could not serialize access",
    "deadlock detected",
)


# ============================================================
# ERROR TRANSLATION
# ============================================================


def _is_lock_conflict(exc: OperationalError) -> bool:
    cause = exc.__cause__
    sqlstate = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if sqlstate in LOCK_CONFLICT_SQLSTATES:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in LOCK_CONFLICT_MESSAGES)


@contextmanager
def store_errors(*, operation: str, order_id=None):
    """
    Translate database errors raised inside the block.

    - lock / serialization failures and unresolved unique violations
      -> StoreConflictError (retry the whole call)
    - any other operational / interface failure
      -> StoreUnavailableError (retry with backoff)
    """
    try:
        yield
    except IntegrityError as exc:
        logger.warning(
            "Ledger store integrity conflict",
            extra={"operation": operation, "order_id": str(order_id)},
        )
        raise StoreConflictError(
            f"Concurrent write conflict during {operation}: {exc}"
        ) from exc
    except OperationalError as exc:
        if _is_lock_conflict(exc):
            logger.warning(
                "Ledger store lock conflict",
                extra={"operation": operation, "order_id": str(order_id)},
            )
            raise StoreConflictError(
                f"Concurrent write conflict during {operation}: {exc}"
            ) from exc
        logger.error(
            "Ledger store unavailable",
            extra={"operation": operation, "order_id": str(order_id)},
        )
        raise StoreUnavailableError(
            f"Store unavailable during {operation}: {exc}"
        ) from exc
    except InterfaceError as exc:
        logger.error(
            "Ledger store connection failure",
            extra={"operation": operation, "order_id": str(order_id)},
        )
        raise StoreUnavailableError(
            f"Store unavailable during {operation}: {exc}"
        ) from exc


# ============================================================
# ORDER ROW
# ============================================================


def lock_order(order_id) -> Order | None:
    """
    Read the order holding its row lock until the enclosing transaction ends.
    """
    return (
        Order.objects.select_for_update()
        .filter(pk=order_id)
        .first()
    )


def write_order_status(*, order_id, **fields) -> bool:
    """
    Conditional single-row update. False means the order no longer exists.
    """
    fields.setdefault("updated_at", timezone.now())
    updated = Order.objects.filter(pk=order_id).update(**fields)
    return updated > 0


# ============================================================
# EARNING PROJECTIONS
# ============================================================


def _find_locked(model, *, order_id):
    return model.objects.select_for_update().filter(order_id=order_id).first()


def _upsert(model, *, order: Order, values: dict):
    existing = _find_locked(model, order_id=order.pk)

    if existing is None:
        try:
            with transaction.atomic():
                created = model.objects.create(order=order, **values)
            return created, True
        except IntegrityError:
            # another writer created the row between our read and our insert
            logger.info(
                "Earning row created concurrently; updating in place",
                extra={"model": model.__name__, "order_id": str(order.pk)},
            )
            existing = _find_locked(model, order_id=order.pk)
            if existing is None:
                raise

    for field, value in values.items():
        setattr(existing, field, value)
    existing.save(update_fields=[*values.keys(), "updated_at"])
    return existing, False


@transaction.atomic
def upsert_vendor_earning(
    *,
    order: Order,
    split: CommissionSplit,
    completed_at: datetime,
) -> tuple[VendorEarning, bool]:
    offering_names = list(order.items.values_list("offering_name", flat=True))

    return _upsert(
        VendorEarning,
        order=order,
        values={
            "vendor_id": order.vendor_id,
            "order_no": order.order_no,
            "amount": split.vendor_share,
            "offering_names": offering_names,
            "completed_at": completed_at,
        },
    )


@transaction.atomic
def upsert_platform_earning(
    *,
    order: Order,
    split: CommissionSplit,
    recognized_at: datetime,
) -> tuple[PlatformEarning, bool]:
    return _upsert(
        PlatformEarning,
        order=order,
        values={
            "vendor_id": order.vendor_id,
            "order_no": order.order_no,
            "commission_amount": split.platform_share,
            "commission_rate": split.rate,
            "recognized_at": recognized_at,
        },
    )


@transaction.atomic
def delete_earnings_for_order(*, order_id) -> int:
    """
    Remove both projections. Absence is not an error (a previous partial run
    may already have removed them).
    """
    vendor_deleted, _ = VendorEarning.objects.filter(order_id=order_id).delete()
    platform_deleted, _ = PlatformEarning.objects.filter(order_id=order_id).delete()
    return vendor_deleted + platform_deleted


def get_earnings_for_order(
    order_id,
) -> tuple[VendorEarning | None, PlatformEarning | None]:
    return (
        VendorEarning.objects.filter(order_id=order_id).first(),
        PlatformEarning.objects.filter(order_id=order_id).first(),
    )
