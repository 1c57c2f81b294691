# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "offering_id",
            "offering_name",
            "unit_price",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    Read-only order representation.

    Status is never written through this serializer; it changes only via
    the status command endpoint.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    customer_id = serializers.UUIDField(read_only=True)
    vendor_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "customer_id",
            "vendor_id",
            "vendor_name",
            "status",
            "payment_status",
            "total_amount",
            "currency",
            "shipping_address",
            "notes_to_vendor",
            "items",
            "created_at",
            "updated_at",
            "fulfilled_at",
        ]
        read_only_fields = fields
