"""Admin registrations for the room catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = (
        "room_number",
        "name",
        "room_type",
        "price_per_night",
        "max_occupancy",
        "status",
        "is_active",
        "total_bookings",
    )
    list_filter = ("room_type", "status", "is_active")
    search_fields = ("room_number", "name")
    readonly_fields = ("total_bookings", "last_booked_at", "created_at", "updated_at")
