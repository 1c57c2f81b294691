# orders/services/exceptions.py

"""
ORDER STATUS SERVICE ERRORS

Centralized domain errors for the order lifecycle and earnings engine.

Every error carries:
- code:      stable machine-readable identifier (used by the API envelope)
- retryable: True when re-invoking the SAME call is safe and may succeed

Terminal errors (retryable=False) must not be retried without changing input.
"""


class OrderStatusError(Exception):
    """Base exception for all order status service failures."""

    code = "ORDER_STATUS_ERROR"
    retryable = False


class OrderNotFoundError(OrderStatusError):
    """Order id does not resolve (including deletion by its customer mid-flight)."""

    code = "NOT_FOUND"


class TransitionForbiddenError(OrderStatusError):
    """Actor is not allowed to act on this order."""

    code = "FORBIDDEN"


class InvalidArgumentError(OrderStatusError):
    """Input is outside the accepted domain (unknown status, bad amount)."""

    code = "INVALID_ARGUMENT"


class InvalidTransitionError(OrderStatusError):
    """Requested edge is not permitted by the order lifecycle."""

    code = "INVALID_TRANSITION"


class StoreConflictError(OrderStatusError):
    """Concurrent write detected; retry the whole call."""

    code = "STORE_CONFLICT"
    retryable = True


class StoreUnavailableError(OrderStatusError):
    """Transient database failure; retry the whole call with backoff."""

    code = "STORE_UNAVAILABLE"
    retryable = True
