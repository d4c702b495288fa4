from django.db import models
from django.utils import timezone

from config.models import TimeStampedUUIDModel


class Rider(TimeStampedUUIDModel):
    STATUS_CHOICES = [
        ("offline", "Offline"),
        ("available", "Available"),
        ("busy", "Busy"),
    ]

    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(max_length=100, null=True, blank=True)
    # deactivated riders are hidden from assignment, never deleted
    is_active = models.BooleanField(default=True)
    current_status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default="offline"
    )

    class Meta:
        db_table = "riders"
        indexes = [
            models.Index(fields=["current_status"], name="rider_status_idx"),
            models.Index(fields=["is_active"], name="rider_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} - ({self.phone})"


class RiderLocation(models.Model):
    """Append-only GPS sample reported by a rider's device"""

    rider = models.ForeignKey(Rider, on_delete=models.PROTECT, related_name="locations")
    latitude = models.DecimalField(max_digits=10, decimal_places=7)
    longitude = models.DecimalField(max_digits=10, decimal_places=7)
    heading = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    speed = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    accuracy = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True
    )
    timestamp = models.DateTimeField(default=timezone.now)
    received_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "rider_locations"
        constraints = [
            models.UniqueConstraint(
                fields=["rider", "timestamp"], name="rider_location_unique_sample"
            ),
        ]
        indexes = [
            models.Index(fields=["rider", "-timestamp"], name="rider_location_latest_idx"),
            models.Index(fields=["timestamp"], name="rider_location_ts_idx"),
        ]
        ordering = ["-timestamp"]

    def __str__(self):
        return f"{self.rider_id} @ ({self.latitude}, {self.longitude}) {self.timestamp.isoformat()}"
