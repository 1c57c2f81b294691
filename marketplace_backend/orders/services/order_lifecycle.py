"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions for Order entities.

DESIGN PRINCIPLES:
- No database writes
- No ledger side effects
- Single source of truth

EDGES:
    created      -> in_progress | cancelled
    in_progress  -> fulfilled   | cancelled
    fulfilled    -> cancelled              (reversal)
    X            -> X                      (idempotent re-application)
    cancelled    -> anything               REJECTED (terminal, even cancelled -> cancelled)

Fulfilment must pass through in_progress: created -> fulfilled is rejected.
"""

from orders.models import Order
from orders.services.exceptions import InvalidArgumentError, InvalidTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

ALL_STATES = frozenset(value for value, _label in Order.STATUS_CHOICES)

TERMINAL_STATES = {
    Order.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_CREATED: {
        Order.STATUS_IN_PROGRESS,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_IN_PROGRESS: {
        Order.STATUS_FULFILLED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_FULFILLED: {
        Order.STATUS_CANCELLED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def normalize_status(value) -> str:
    """
    Accepts any of the four enumerated states, case/whitespace-insensitive.
    """
    if not isinstance(value, str):
        raise InvalidArgumentError(f"Status must be a string, got {value!r}")

    status = value.strip().lower()
    if status not in ALL_STATES:
        raise InvalidArgumentError(
            f"Invalid status value {value!r}. Allowed: {', '.join(sorted(ALL_STATES))}"
        )
    return status


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    if from_status == to_status:
        return True

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def is_reversal(*, from_status: str, to_status: str) -> bool:
    return from_status == Order.STATUS_FULFILLED and to_status == Order.STATUS_CANCELLED


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(
        from_status=order.status,
        to_status=target_status,
    ):
        raise InvalidTransitionError(
            f"Order {order.order_no or order.id} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )
