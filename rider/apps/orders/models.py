from django.db import models
from django.db.models import Q

from config.models import TimeStampedUUIDModel

from .constants import DeliveryStatus, DeliveryType, PaymentMethod

_DISPATCHED = [DeliveryStatus.IN_DELIVERY, DeliveryStatus.DELIVERED]
_NOT_DISPATCHED = [DeliveryStatus.PENDING, DeliveryStatus.ASSIGNED, DeliveryStatus.CANCELLED]


class Order(TimeStampedUUIDModel):
    order_number = models.CharField(max_length=32, unique=True)
    customer_name = models.CharField(max_length=100)
    customer_email = models.EmailField(max_length=254)
    customer_phone = models.CharField(max_length=20)
    customer_address = models.CharField(max_length=255, blank=True, default="")
    delivery_lat = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    delivery_lng = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    delivery_type = models.CharField(
        max_length=10, choices=DeliveryType.CHOICES, default=DeliveryType.DELIVERY
    )
    payment_method = models.CharField(
        max_length=10, choices=PaymentMethod.CHOICES, default=PaymentMethod.CASH
    )
    special_instructions = models.TextField(blank=True, default="")
    delivery_fee = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    payment_surcharge = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_status = models.CharField(
        max_length=20, choices=DeliveryStatus.CHOICES, default=DeliveryStatus.PENDING
    )
    rider = models.ForeignKey(
        "riders.Rider",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    dispatched_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        indexes = [
            models.Index(fields=["delivery_status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["rider", "delivery_status"], name="order_rider_status_idx"),
            models.Index(fields=["customer_email"], name="order_customer_email_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(delivery_status__in=sorted(DeliveryStatus.UNASSIGNED), rider__isnull=True)
                    | (~Q(delivery_status__in=sorted(DeliveryStatus.UNASSIGNED)) & Q(rider__isnull=False))
                ),
                name="order_rider_matches_status",
            ),
            models.CheckConstraint(
                condition=(
                    Q(delivery_status__in=_DISPATCHED, dispatched_at__isnull=False)
                    | Q(delivery_status__in=_NOT_DISPATCHED, dispatched_at__isnull=True)
                ),
                name="order_dispatched_at_matches_status",
            ),
            models.CheckConstraint(
                condition=(
                    Q(delivery_status=DeliveryStatus.DELIVERED, delivered_at__isnull=False)
                    | (~Q(delivery_status=DeliveryStatus.DELIVERED) & Q(delivered_at__isnull=True))
                ),
                name="order_delivered_at_matches_status",
            ),
        ]

    def __str__(self):
        return f"Order #{self.order_number} - {self.delivery_status}"

    @property
    def is_active(self) -> bool:
        return self.delivery_status in DeliveryStatus.ACTIVE


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=8, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    special_requests = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_items"

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"
