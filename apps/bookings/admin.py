"""Admin registration for bookings.

The admin is a read-only window on the booking log. Dates, room, guests,
money, payment and lifecycle fields change only through the booking
commands, which re-check availability and reprice; staff may edit the
free-text notes and special requests here.
"""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingGuest, ServiceCharge

EDITABLE_BOOKING_FIELDS = ("special_requests", "admin_notes")


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def get_readonly_fields(self, request, obj=None):  # type: ignore
        return [f.name for f in self.model._meta.concrete_fields if not f.primary_key and f.name != "booking"]

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


class BookingGuestInline(ReadOnlyInline):
    model = BookingGuest


class ServiceChargeInline(ReadOnlyInline):
    model = ServiceCharge


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "room_number",
        "user_email",
        "status",
        "payment_status",
        "check_in_date",
        "check_out_date",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "booking_source", "is_group_booking", "check_in_date")
    search_fields = ("booking_number", "user_email", "user_full_name", "room_number", "guests__national_id")
    inlines = (BookingGuestInline, ServiceChargeInline)

    def get_readonly_fields(self, request, obj=None):  # type: ignore
        return [
            f.name for f in Booking._meta.concrete_fields
            if not f.primary_key and f.name not in EDITABLE_BOOKING_FIELDS
        ]

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
