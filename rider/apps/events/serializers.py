from rest_framework import serializers

from .models import OrderEvent


class OrderEventSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    rider_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = OrderEvent
        fields = [
            "id",
            "order_id",
            "rider_id",
            "event_type",
            "from_status",
            "to_status",
            "actor",
            "event_data",
            "created_at",
        ]
