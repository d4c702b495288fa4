from rest_framework import serializers

from .constants import DeliveryStatus, DeliveryType, PaymentMethod
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["product_id", "product_name", "quantity", "unit_price", "subtotal", "special_requests"]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    rider_id = serializers.UUIDField(read_only=True)
    notification_warnings = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_name",
            "customer_email",
            "customer_phone",
            "customer_address",
            "delivery_lat",
            "delivery_lng",
            "delivery_type",
            "payment_method",
            "special_instructions",
            "items",
            "delivery_fee",
            "payment_surcharge",
            "total_amount",
            "delivery_status",
            "rider_id",
            "created_at",
            "updated_at",
            "dispatched_at",
            "delivered_at",
            "cancelled_at",
            "cancellation_reason",
            "notification_warnings",
        ]

    def get_notification_warnings(self, obj):
        return [str(warning) for warning in getattr(obj, "notification_warnings", [])]


class OrderItemDraftSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=64)
    product_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=8, decimal_places=2)
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")


class OrderDraftSerializer(serializers.Serializer):
    """Shape of a checkout request; business rules are enforced by the order store"""

    customer_name = serializers.CharField(max_length=100, allow_blank=True)
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(max_length=20, allow_blank=True)
    customer_address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    delivery_lat = serializers.DecimalField(max_digits=10, decimal_places=7, required=False, allow_null=True)
    delivery_lng = serializers.DecimalField(max_digits=10, decimal_places=7, required=False, allow_null=True)
    delivery_type = serializers.ChoiceField(choices=DeliveryType.CHOICES, default=DeliveryType.DELIVERY)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.CHOICES, default=PaymentMethod.CASH)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    delivery_fee = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    items = OrderItemDraftSerializer(many=True, allow_empty=True)


class AssignRiderSerializer(serializers.Serializer):
    rider_id = serializers.UUIDField()


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class OrderListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    rider_id = serializers.UUIDField(required=False)
    delivery_type = serializers.ChoiceField(choices=DeliveryType.CHOICES, required=False)
    active = serializers.BooleanField(required=False, default=False)

    def validate_status(self, value):
        statuses = {status.strip() for status in value.split(",") if status.strip()}
        unknown = statuses - {choice for choice, _ in DeliveryStatus.CHOICES}
        if unknown:
            raise serializers.ValidationError(f"Unknown status: {', '.join(sorted(unknown))}")
        return statuses
