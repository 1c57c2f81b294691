# earnings/serializers/earning.py

from rest_framework import serializers

from earnings.models import VendorEarning


class VendorEarningSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = VendorEarning
        fields = [
            "id",
            "order_id",
            "order_no",
            "offering_names",
            "amount",
            "completed_at",
            "earning_month",
        ]
        read_only_fields = fields


class EarningsTrendPointSerializer(serializers.Serializer):
    period = serializers.CharField()
    profit = serializers.IntegerField()


class PlatformOverviewSerializer(serializers.Serializer):
    total_platform_profit = serializers.IntegerField()
    total_customers = serializers.IntegerField()
    total_vendors = serializers.IntegerField()
