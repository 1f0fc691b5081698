"""Serializers for the booking domain.

Input serializers only check the shape of a request; the booking rules
(dates, capacity, availability, status) live in the command handlers.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.api.permissions import is_hotel_admin

from .domain.statuses import BookingSource, PaymentMethod, ServiceType
from .models import Booking, BookingGuest, ServiceCharge


# ===== Output =====

class BookingGuestSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingGuest
        fields = ["full_name", "phone", "email", "national_id", "nationality", "address"]


class ServiceChargeSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = ServiceCharge
        fields = [
            "id",
            "service_type",
            "description",
            "unit_amount",
            "quantity",
            "line_total",
            "charged_at",
            "added_by",
            "voided_at",
            "voided_by",
        ]
        read_only_fields = fields


class BookingListSerializer(serializers.ModelSerializer):
    """Compact row for listings and reports."""

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "user_full_name",
            "user_email",
            "room_id",
            "room_number",
            "room_type",
            "group_booking_id",
            "check_in_date",
            "check_out_date",
            "number_of_nights",
            "number_of_guests",
            "status",
            "payment_status",
            "total_amount",
            "currency",
            "created_at",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking with guests and the service charge log."""

    user_id = serializers.ReadOnlyField(source="user.id")
    primary_guest = serializers.SerializerMethodField()
    additional_guests = serializers.SerializerMethodField()
    service_charges = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "user_id",
            "user_email",
            "user_full_name",
            "user_phone",
            "room_id",
            "room_number",
            "room_name",
            "room_type",
            "group_booking_id",
            "is_group_booking",
            "check_in_date",
            "check_out_date",
            "actual_check_in_time",
            "actual_check_out_time",
            "is_early_check_in",
            "early_check_in_fee",
            "is_late_check_out",
            "late_check_out_fee",
            "number_of_guests",
            "number_of_children",
            "primary_guest",
            "additional_guests",
            "currency",
            "room_price_per_night",
            "number_of_nights",
            "subtotal",
            "tax_amount",
            "service_charge",
            "additional_charges_total",
            "discount",
            "total_amount",
            "service_charges",
            "payment_status",
            "payment_method",
            "payment_transaction_id",
            "payment_date",
            "deposit_amount",
            "deposit_paid",
            "deposit_paid_date",
            "deposit_payment_method",
            "status",
            "special_requests",
            "added_services",
            "cancelled_at",
            "cancellation_reason",
            "cancellation_fee",
            "created_at",
            "updated_at",
            "confirmed_at",
            "admin_notes",
            "booking_source",
            "room_cleaned_after_checkout",
            "confirmation_email_sent",
            "reminder_email_sent",
        ]
        read_only_fields = fields

    def get_primary_guest(self, obj: Booking):  # type: ignore
        guest = obj.primary_guest
        return BookingGuestSerializer(guest).data if guest else None

    def get_additional_guests(self, obj: Booking):  # type: ignore
        return BookingGuestSerializer(obj.additional_guests, many=True).data

    def get_service_charges(self, obj: Booking):  # type: ignore
        return ServiceChargeSerializer(obj.service_charges.all(), many=True).data

    def to_representation(self, instance):  # type: ignore
        data = super().to_representation(instance)
        request = self.context.get("request")
        if request is not None and not is_hotel_admin(request.user):
            data.pop("admin_notes", None)
        return data


# ===== Input =====

class GuestInputSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    national_id = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    nationality = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    address = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class RoomStaySerializer(serializers.Serializer):
    """Per-room details shared by single and group bookings."""

    number_of_guests = serializers.IntegerField(min_value=1)
    number_of_children = serializers.IntegerField(min_value=0, default=0)
    primary_guest = GuestInputSerializer()
    additional_guests = GuestInputSerializer(many=True, required=False, default=list)
    is_early_check_in = serializers.BooleanField(default=False)
    is_late_check_out = serializers.BooleanField(default=False)
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")
    added_services = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False, default=list
    )
    booking_source = serializers.ChoiceField(choices=BookingSource.choices, required=False)


class BookingCreateSerializer(RoomStaySerializer):
    room_id = serializers.IntegerField()
    check_in_date = serializers.DateField()
    check_out_date = serializers.DateField()
    # Admins may book on behalf of a guest account
    user_email = serializers.EmailField(required=False)


class GroupRoomSerializer(RoomStaySerializer):
    room_id = serializers.IntegerField(required=False)
    booking_source = serializers.ChoiceField(choices=BookingSource.choices, required=False)


class GroupBookingCreateSerializer(serializers.Serializer):
    room_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    check_in_date = serializers.DateField()
    check_out_date = serializers.DateField()
    room_bookings = GroupRoomSerializer(many=True)
    group_name = serializers.CharField(required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")
    user_email = serializers.EmailField(required=False)


class BookingUpdateSerializer(serializers.Serializer):
    check_in_date = serializers.DateField(required=False)
    check_out_date = serializers.DateField(required=False)
    number_of_guests = serializers.IntegerField(min_value=1, required=False)
    number_of_children = serializers.IntegerField(min_value=0, required=False)
    special_requests = serializers.CharField(required=False, allow_blank=True)
    added_services = serializers.ListField(child=serializers.CharField(max_length=100), required=False)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class GuestVerificationSerializer(serializers.Serializer):
    national_id = serializers.CharField(max_length=20)


class CheckInSerializer(serializers.Serializer):
    guest_verification = GuestVerificationSerializer(required=False)
    deposit_payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, allow_blank=True, default=""
    )
    deposit_transaction_id = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    transaction_id = serializers.CharField(required=False, allow_blank=True, default="")


class ServiceChargeCreateSerializer(serializers.Serializer):
    service_type = serializers.ChoiceField(choices=ServiceType.choices)
    description = serializers.CharField(max_length=255)
    unit_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1, default=1)


class DiscountSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class FeeApprovalSerializer(serializers.Serializer):
    fee = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)


class AdminNotesSerializer(serializers.Serializer):
    notes = serializers.CharField()


class AvailabilityRequestSerializer(serializers.Serializer):
    """Either ``room_id`` for one room or ``room_ids`` for a batch."""

    room_id = serializers.IntegerField(required=False)
    room_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=False)
    check_in_date = serializers.DateField()
    check_out_date = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if ("room_id" in attrs) == ("room_ids" in attrs):
            raise serializers.ValidationError({"room_id": ["Provide either room_id or room_ids."]})
        return attrs


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class DayQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class MonthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)
