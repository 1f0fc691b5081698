from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Room",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("room_number", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "room_type",
                    models.CharField(
                        choices=[
                            ("STANDARD", "Standard Room"),
                            ("SUPERIOR", "Superior Room"),
                            ("DELUXE", "Deluxe Room"),
                            ("SUITE", "Suite Room"),
                            ("EXECUTIVE", "Executive Room"),
                            ("PRESIDENTIAL", "Presidential Suite"),
                            ("FAMILY", "Family Room"),
                            ("HONEYMOON", "Honeymoon Suite"),
                        ],
                        default="STANDARD",
                        max_length=20,
                    ),
                ),
                ("floor", models.SmallIntegerField(blank=True, null=True)),
                (
                    "price_per_night",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("max_occupancy", models.PositiveSmallIntegerField(default=2)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("AVAILABLE", "Available"),
                            ("OCCUPIED", "Occupied"),
                            ("RESERVED", "Reserved"),
                            ("MAINTENANCE", "Maintenance"),
                            ("CLEANING", "Cleaning"),
                            ("OUT_OF_SERVICE", "Out of service"),
                        ],
                        default="AVAILABLE",
                        max_length=20,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("total_bookings", models.PositiveIntegerField(default=0)),
                ("last_booked_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Room",
                "verbose_name_plural": "Rooms",
                "ordering": ["room_number"],
                "indexes": [
                    models.Index(fields=["status"], name="rooms_room_status_idx"),
                    models.Index(fields=["is_active"], name="rooms_room_active_idx"),
                ],
            },
        ),
    ]
