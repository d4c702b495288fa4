import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("riders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order_number", models.CharField(max_length=32, unique=True)),
                ("customer_name", models.CharField(max_length=100)),
                ("customer_email", models.EmailField(max_length=254)),
                ("customer_phone", models.CharField(max_length=20)),
                ("customer_address", models.CharField(blank=True, default="", max_length=255)),
                ("delivery_lat", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("delivery_lng", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                (
                    "delivery_type",
                    models.CharField(
                        choices=[("delivery", "Delivery"), ("pickup", "Pickup")],
                        default="delivery",
                        max_length=10,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("cash", "Cash"), ("card", "Card"), ("pos", "POS terminal")],
                        default="cash",
                        max_length=10,
                    ),
                ),
                ("special_instructions", models.TextField(blank=True, default="")),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("payment_surcharge", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "delivery_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("assigned", "Assigned"),
                            ("in_delivery", "In Delivery"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                (
                    "rider",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="riders.rider",
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "indexes": [
                    models.Index(fields=["delivery_status", "created_at"], name="order_status_created_idx"),
                    models.Index(fields=["rider", "delivery_status"], name="order_rider_status_idx"),
                    models.Index(fields=["customer_email"], name="order_customer_email_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("delivery_status__in", ["cancelled", "pending"]), ("rider__isnull", True)),
                            models.Q(
                                models.Q(("delivery_status__in", ["cancelled", "pending"]), _negated=True),
                                ("rider__isnull", False),
                            ),
                            _connector="OR",
                        ),
                        name="order_rider_matches_status",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("delivery_status__in", ["in_delivery", "delivered"]),
                                ("dispatched_at__isnull", False),
                            ),
                            models.Q(
                                ("delivery_status__in", ["pending", "assigned", "cancelled"]),
                                ("dispatched_at__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="order_dispatched_at_matches_status",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("delivery_status", "delivered"), ("delivered_at__isnull", False)),
                            models.Q(
                                models.Q(("delivery_status", "delivered"), _negated=True),
                                ("delivered_at__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="order_delivered_at_matches_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_id", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=8)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=10)),
                ("special_requests", models.TextField(blank=True, default="")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_items",
            },
        ),
    ]
