# orders/serializers/status_command.py

from rest_framework import serializers


class OrderStatusCommandSerializer(serializers.Serializer):
    """
    Command serializer for status changes.

    Only checks shape. Whether the value names a known status is decided
    by the lifecycle rules, so the caller gets INVALID_ARGUMENT from one place.
    """

    status = serializers.CharField(max_length=32, trim_whitespace=True)
