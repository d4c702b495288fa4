import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Rider",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("phone", models.CharField(max_length=20, unique=True)),
                ("email", models.EmailField(blank=True, max_length=100, null=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "current_status",
                    models.CharField(
                        choices=[("offline", "Offline"), ("available", "Available"), ("busy", "Busy")],
                        default="offline",
                        max_length=10,
                    ),
                ),
            ],
            options={
                "db_table": "riders",
                "indexes": [
                    models.Index(fields=["current_status"], name="rider_status_idx"),
                    models.Index(fields=["is_active"], name="rider_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RiderLocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("latitude", models.DecimalField(decimal_places=7, max_digits=10)),
                ("longitude", models.DecimalField(decimal_places=7, max_digits=10)),
                ("heading", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("speed", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("accuracy", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("received_at", models.DateTimeField(auto_now=True)),
                (
                    "rider",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="locations",
                        to="riders.rider",
                    ),
                ),
            ],
            options={
                "db_table": "rider_locations",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["rider", "-timestamp"], name="rider_location_latest_idx"),
                    models.Index(fields=["timestamp"], name="rider_location_ts_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("rider", "timestamp"), name="rider_location_unique_sample"),
                ],
            },
        ),
    ]
