# orders/tests/helpers.py

"""
Shared fixtures for order / earnings tests.

Orders are created through place_order (the real placement path); a status
other than 'created' is then forced with a queryset update so tests can
start from any lifecycle point without going through the engine.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model

from orders.models import Order
from orders.services.order_placement import place_order

User = get_user_model()


def make_user(email: str, role: str, **extra):
    return User.objects.create_user(email=email, password="pass", role=role, **extra)


def make_parties():
    customer = make_user("customer@example.com", User.ROLE_CUSTOMER, full_name="Ayesha Customer")
    vendor = make_user("vendor@example.com", User.ROLE_VENDOR, full_name="Bilal Tailors")
    other_vendor = make_user("other.vendor@example.com", User.ROLE_VENDOR)
    admin = make_user("admin@example.com", User.ROLE_ADMIN)
    return customer, vendor, other_vendor, admin


def make_order(*, customer, vendor, total: int = 10000, status: str = Order.STATUS_CREATED) -> Order:
    order = place_order(
        customer=customer,
        vendor=vendor,
        items=[
            {
                "offering_id": "svc-1",
                "offering_name": "Tailored suit",
                "unit_price": total,
                "quantity": 1,
            }
        ],
    )

    if status != Order.STATUS_CREATED:
        Order.objects.filter(pk=order.pk).update(status=status)
        order.refresh_from_db()

    return order
