from django.db import models

from config.models import TimeStampedUUIDModel

from .constants import RecipientTypes


class Notification(TimeStampedUUIDModel):
    STATUS_CHOICES = [
        ("sent", "Sent"),
        ("failed", "Failed"),
    ]

    recipient_type = models.CharField(max_length=20, choices=RecipientTypes.CHOICES)
    # rider id, customer email, or the shared admin id
    recipient_id = models.CharField(max_length=254)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    notification_type = models.CharField(max_length=50)
    title = models.CharField(max_length=100, blank=True)
    message = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="sent")
    error = models.TextField(blank=True, default="")
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications"
        indexes = [
            models.Index(fields=["recipient_type", "recipient_id", "is_read"], name="notification_recipient_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.notification_type} -> {self.recipient_type}:{self.recipient_id}"
