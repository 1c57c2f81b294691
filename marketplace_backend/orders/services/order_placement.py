# orders/services/order_placement.py

"""
ORDER PLACEMENT (APPLICATION SERVICE)

Purpose:
- Create an order in status 'created' with snapshotted line items
  and a server-computed, fixed total.
- Let the owning customer withdraw an order before it is fulfilled.

Hard rules:
- Money is integer minor units; the client never supplies totals.
- An order belongs to exactly one vendor.
- Fulfilled / cancelled orders are never deleted (ledger + audit trail).
"""

from __future__ import annotations

import logging
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from earnings.services import ledger_store
from orders.models import Order, OrderItem
from orders.services.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    OrderNotFoundError,
    TransitionForbiddenError,
)
from permissions.roles import ROLE_CUSTOMER, ROLE_VENDOR, get_user_role

logger = logging.getLogger(__name__)

DELETABLE_STATES = {
    Order.STATUS_CREATED,
    Order.STATUS_IN_PROGRESS,
}


def _to_whole_number(value, *, field: str, index: int, minimum: int) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Item {index}: {field} must be a whole number")

    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())

    if not isinstance(value, int):
        raise InvalidArgumentError(f"Item {index}: {field} must be a whole number")

    if value < minimum:
        raise InvalidArgumentError(f"Item {index}: {field} must be >= {minimum}")
    return value


def _normalize_items(items) -> list[dict]:
    if not items:
        raise InvalidArgumentError("An order needs at least one item")

    out = []
    for idx, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise InvalidArgumentError(f"Item {idx}: must be an object")

        name = str(raw.get("offering_name", "") or "").strip()
        if not name:
            raise InvalidArgumentError(f"Item {idx}: offering_name is required")

        quantity = _to_whole_number(raw.get("quantity"), field="quantity", index=idx, minimum=1)
        unit_price = _to_whole_number(raw.get("unit_price"), field="unit_price", index=idx, minimum=0)

        out.append(
            {
                "offering_id": str(raw.get("offering_id", "") or "").strip() or name,
                "offering_name": name,
                "unit_price": unit_price,
                "quantity": quantity,
            }
        )
    return out


@transaction.atomic
def place_order(
    *,
    customer,
    vendor,
    items,
    currency: str | None = None,
    shipping_address: dict | None = None,
    notes_to_vendor: str = "",
) -> Order:
    if get_user_role(customer) != ROLE_CUSTOMER:
        raise TransitionForbiddenError("Only customers can place orders")

    if get_user_role(vendor) != ROLE_VENDOR:
        raise InvalidArgumentError("Orders can only be placed with a vendor")

    lines = _normalize_items(items)
    total = sum(line["unit_price"] * line["quantity"] for line in lines)

    order = Order.objects.create(
        customer=customer,
        vendor=vendor,
        vendor_name=vendor.display_name,
        total_amount=total,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        shipping_address=shipping_address or {},
        notes_to_vendor=notes_to_vendor or "",
    )

    try:
        for line in lines:
            OrderItem.objects.create(order=order, **line)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid order item: {exc}") from exc

    logger.info(
        "Order placed",
        extra={
            "order_id": str(order.pk),
            "order_no": order.order_no,
            "vendor_id": str(vendor.pk),
            "total_amount": total,
        },
    )
    return order


@transaction.atomic
def delete_order(*, order_id, actor_id, actor_role: str) -> None:
    try:
        parsed_id = uuid.UUID(str(order_id))
    except ValueError as exc:
        raise OrderNotFoundError(f"Order {order_id} not found.") from exc

    order = Order.objects.select_for_update().filter(pk=parsed_id).first()
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found.")

    if actor_role != ROLE_CUSTOMER or str(order.customer_id) != str(actor_id):
        raise TransitionForbiddenError("Only the customer who placed the order can delete it")

    if order.status not in DELETABLE_STATES:
        raise InvalidTransitionError(
            f"Order {order.order_no} is '{order.status}' and can no longer be deleted"
        )

    # projections only exist for fulfilled orders; leftovers would block the delete
    stale = ledger_store.delete_earnings_for_order(order_id=order.pk)
    if stale:
        logger.warning(
            "Removed stale earnings before deleting order",
            extra={"order_id": str(parsed_id), "rows": stale},
        )

    order_no = order.order_no
    order.delete()

    logger.info("Order deleted", extra={"order_id": str(parsed_id), "order_no": order_no})
