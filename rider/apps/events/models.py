from django.db import models

from config.models import TimeStampedUUIDModel

from .constants import EventTypes


class OrderEvent(TimeStampedUUIDModel):
    """Audit trail of an order's lifecycle, one row per status change"""

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="events"
    )
    rider = models.ForeignKey(
        "riders.Rider",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_events",
    )
    event_type = models.CharField(max_length=50, choices=EventTypes.CHOICES)
    from_status = models.CharField(max_length=20, blank=True, default="")
    to_status = models.CharField(max_length=20)
    actor = models.CharField(max_length=300, blank=True, default="")
    event_data = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "order_events"
        indexes = [
            models.Index(fields=["order", "created_at"], name="order_event_order_idx"),
            models.Index(fields=["event_type"], name="order_event_type_idx"),
        ]
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.event_type} - {self.order_id}"
