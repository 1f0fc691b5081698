"""Room catalog models."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Room(models.Model):
    """Bookable hotel room."""

    class RoomType(models.TextChoices):
        STANDARD = "STANDARD", _("Standard Room")
        SUPERIOR = "SUPERIOR", _("Superior Room")
        DELUXE = "DELUXE", _("Deluxe Room")
        SUITE = "SUITE", _("Suite Room")
        EXECUTIVE = "EXECUTIVE", _("Executive Room")
        PRESIDENTIAL = "PRESIDENTIAL", _("Presidential Suite")
        FAMILY = "FAMILY", _("Family Room")
        HONEYMOON = "HONEYMOON", _("Honeymoon Suite")

    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", _("Available")
        OCCUPIED = "OCCUPIED", _("Occupied")
        RESERVED = "RESERVED", _("Reserved")
        MAINTENANCE = "MAINTENANCE", _("Maintenance")
        CLEANING = "CLEANING", _("Cleaning")
        OUT_OF_SERVICE = "OUT_OF_SERVICE", _("Out of service")

    room_number = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    room_type = models.CharField(
        max_length=20,
        choices=RoomType.choices,
        default=RoomType.STANDARD,
    )
    floor = models.SmallIntegerField(null=True, blank=True)
    price_per_night = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    max_occupancy = models.PositiveSmallIntegerField(default=2)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )
    is_active = models.BooleanField(default=True)
    total_bookings = models.PositiveIntegerField(default=0)
    last_booked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Statuses that take a room off sale regardless of dates
    UNBOOKABLE_STATUSES = (Status.MAINTENANCE, Status.OUT_OF_SERVICE)

    class Meta:
        verbose_name = _("Room")
        verbose_name_plural = _("Rooms")
        ordering = ["room_number"]
        indexes = [
            models.Index(fields=["status"], name="rooms_room_status_idx"),
            models.Index(fields=["is_active"], name="rooms_room_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.room_number} {self.name}"

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.status not in self.UNBOOKABLE_STATUSES
