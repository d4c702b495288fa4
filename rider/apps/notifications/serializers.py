from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "recipient_type",
            "recipient_id",
            "order_id",
            "notification_type",
            "title",
            "message",
            "data",
            "status",
            "is_read",
            "read_at",
            "created_at",
        ]
