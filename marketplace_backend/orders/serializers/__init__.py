from .order import OrderItemSerializer, OrderSerializer
from .status_command import OrderStatusCommandSerializer

__all__ = [
    "OrderSerializer",
    "OrderItemSerializer",
    "OrderStatusCommandSerializer",
]
