"""API views for the booking domain.

Views translate HTTP into commands and hand them to the message bus; the
command handlers own every rule. Domain errors raised by the handlers
are turned into responses by the project's exception handler.
"""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus
from apps.users.api.permissions import IsBookingOwnerOrAdmin, IsHotelAdmin, is_hotel_admin

from . import availability, queries
from .application import command_handlers as commands
from .filters import BookingFilterSet
from .infrastructure.repositories import BookingRepository
from .models import Booking
from .serializers import (
    AdminNotesSerializer,
    AvailabilityRequestSerializer,
    BookingCreateSerializer,
    BookingListSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    CheckInSerializer,
    DateRangeQuerySerializer,
    DayQuerySerializer,
    DiscountSerializer,
    FeeApprovalSerializer,
    GroupBookingCreateSerializer,
    PaymentSerializer,
    ServiceChargeCreateSerializer,
    ServiceChargeSerializer,
)

ADMIN_ACTIONS = {
    "confirm",
    "check_in",
    "check_out",
    "no_show",
    "complete",
    "refund",
    "service_charges",
    "remove_service_charge",
    "approve_early_check_in",
    "approve_late_check_out",
    "notes",
    "discount",
    "mark_cleaned",
    "send_confirmation",
    "send_reminder",
    "send_bulk_reminders",
    "needs_cleaning",
    "today_check_ins",
    "today_check_outs",
}


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset for creating bookings and driving them through their lifecycle."""

    queryset = queries.base_queryset()
    serializer_class = BookingSerializer
    filterset_class = BookingFilterSet
    ordering_fields = list(queries.SORTABLE_FIELDS)
    ordering = ["-created_at", "-id"]
    lookup_value_regex = r"\d+"

    def get_permissions(self):  # type: ignore
        if self.action in ADMIN_ACTIONS:
            return [permissions.IsAuthenticated(), IsHotelAdmin()]
        return [permissions.IsAuthenticated(), IsBookingOwnerOrAdmin()]

    def get_serializer_class(self):  # type: ignore
        if self.action == "list":
            return BookingListSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_hotel_admin(user):
            return qs
        return qs.filter(user=user)

    # --- helpers ------------------------------------------------------------
    def _dispatch(self, command, status_code=status.HTTP_200_OK) -> Response:
        booking = message_bus.handle_command(command)
        return self._booking_response(booking, status_code)

    def _booking_response(self, booking: Booking, status_code=status.HTTP_200_OK) -> Response:
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        return Response(data, status=status_code)

    def _list_response(self, bookings) -> Response:
        data = BookingListSerializer(bookings, many=True, context=self.get_serializer_context()).data
        return Response(data)

    def _input(self, serializer_class, data=None) -> dict:
        serializer = serializer_class(data=self.request.data if data is None else data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def _owner_email(self, requested_email: str | None) -> str:
        """Admins may act for another account; guests always book for themselves."""
        if requested_email and is_hotel_admin(self.request.user):
            return requested_email
        return self.request.user.email

    def _source(self, requested_source: str | None, owner_email: str) -> str:
        """Bookings taken by staff for someone else default to PHONE."""
        if requested_source:
            return requested_source
        if owner_email != self.request.user.email:
            return Booking.Source.PHONE
        return Booking.Source.WEBSITE

    # --- create / update ----------------------------------------------------
    @extend_schema(request=BookingCreateSerializer, responses={201: BookingSerializer})
    def create(self, request, *args, **kwargs):  # type: ignore
        data = self._input(BookingCreateSerializer)
        owner_email = self._owner_email(data.get("user_email"))
        command = commands.CreateBookingCommand(
            user_email=owner_email,
            room_id=data["room_id"],
            check_in_date=data["check_in_date"],
            check_out_date=data["check_out_date"],
            number_of_guests=data["number_of_guests"],
            number_of_children=data["number_of_children"],
            primary_guest=dict(data["primary_guest"]),
            additional_guests=[dict(guest) for guest in data["additional_guests"]],
            is_early_check_in=data["is_early_check_in"],
            is_late_check_out=data["is_late_check_out"],
            special_requests=data["special_requests"],
            added_services=data["added_services"],
            booking_source=self._source(data.get("booking_source"), owner_email),
        )
        return self._dispatch(command, status.HTTP_201_CREATED)

    @extend_schema(request=BookingUpdateSerializer, responses={200: BookingSerializer})
    def partial_update(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        data = self._input(BookingUpdateSerializer)
        command = commands.UpdateBookingCommand(booking_id=booking.pk, **data)
        return self._dispatch(command)

    @extend_schema(request=GroupBookingCreateSerializer, responses={201: BookingSerializer(many=True)})
    @action(detail=False, methods=["post"], url_path="group")
    def group(self, request):  # type: ignore
        data = self._input(GroupBookingCreateSerializer)
        command = commands.CreateGroupBookingCommand(
            user_email=self._owner_email(data.get("user_email")),
            room_ids=data["room_ids"],
            check_in_date=data["check_in_date"],
            check_out_date=data["check_out_date"],
            room_bookings=[
                {**details, "primary_guest": dict(details["primary_guest"]),
                 "additional_guests": [dict(guest) for guest in details.get("additional_guests", [])]}
                for details in data["room_bookings"]
            ],
            group_name=data["group_name"],
            special_requests=data["special_requests"],
        )
        bookings = message_bus.handle_command(command)
        serialized = BookingSerializer(bookings, many=True, context=self.get_serializer_context()).data
        return Response(
            {"group_booking_id": bookings[0].group_booking_id, "bookings": serialized},
            status=status.HTTP_201_CREATED,
        )

    # --- lookups ------------------------------------------------------------
    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<booking_number>[A-Za-z0-9]+)")
    def by_number(self, request, booking_number=None):  # type: ignore
        booking = BookingRepository().get_by_number(booking_number)
        self.check_object_permissions(request, booking)
        return self._booking_response(booking)

    @action(detail=False, methods=["get"], url_path="my/upcoming")
    def my_upcoming(self, request):  # type: ignore
        return self._list_response(queries.upcoming_for_user(request.user, timezone.localdate()))

    @action(detail=False, methods=["get"], url_path="my/history")
    def my_history(self, request):  # type: ignore
        return self._list_response(queries.history_for_user(request.user))

    # --- availability -------------------------------------------------------
    @extend_schema(request=AvailabilityRequestSerializer)
    @action(detail=False, methods=["post"], url_path="availability")
    def check_availability(self, request):  # type: ignore
        data = self._input(AvailabilityRequestSerializer)
        check_in, check_out = data["check_in_date"], data["check_out_date"]
        if "room_ids" in data:
            result = availability.batch_availability(data["room_ids"], check_in, check_out)
            return Response({
                "check_in_date": check_in,
                "check_out_date": check_out,
                "rooms": {str(room_id): available for room_id, available in result.items()},
            })
        available = availability.is_available(data["room_id"], check_in, check_out)
        return Response({
            "room_id": data["room_id"],
            "check_in_date": check_in,
            "check_out_date": check_out,
            "available": available,
        })

    @action(detail=False, methods=["get"], url_path=r"rooms/(?P<room_id>\d+)/unavailable-dates")
    def unavailable_dates(self, request, room_id=None):  # type: ignore
        data = self._input(DateRangeQuerySerializer, request.query_params)
        days = availability.unavailable_dates(int(room_id), data["start_date"], data["end_date"])
        return Response({"room_id": int(room_id), "unavailable_dates": days})

    # --- guest actions ------------------------------------------------------
    @extend_schema(request=CancelSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(CancelSerializer)
        return self._dispatch(commands.CancelBookingCommand(
            booking_id=booking.pk,
            reason=data["reason"],
            cancelled_by_id=request.user.pk,
        ))

    @extend_schema(request=PaymentSerializer)
    @action(detail=True, methods=["post"])
    def payment(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(PaymentSerializer)
        return self._dispatch(commands.ProcessPaymentCommand(booking_id=booking.pk, **data))

    @extend_schema(request=PaymentSerializer)
    @action(detail=True, methods=["post"])
    def deposit(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(PaymentSerializer)
        return self._dispatch(commands.ProcessDepositCommand(booking_id=booking.pk, **data))

    # --- front desk ---------------------------------------------------------
    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.ConfirmBookingCommand(booking_id=self.get_object().pk))

    @extend_schema(request=CheckInSerializer)
    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(CheckInSerializer)
        verification = data.get("guest_verification") or {}
        return self._dispatch(commands.CheckInBookingCommand(
            booking_id=booking.pk,
            national_id=verification.get("national_id"),
            deposit_payment_method=data["deposit_payment_method"],
            deposit_transaction_id=data["deposit_transaction_id"],
            notes=data["notes"],
        ))

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.CheckOutBookingCommand(booking_id=self.get_object().pk))

    @action(detail=True, methods=["post"], url_path="no-show")
    def no_show(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.MarkNoShowCommand(booking_id=self.get_object().pk))

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.CompleteBookingCommand(booking_id=self.get_object().pk))

    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.RefundBookingCommand(booking_id=self.get_object().pk))

    @extend_schema(request=ServiceChargeCreateSerializer)
    @action(detail=True, methods=["get", "post"], url_path="service-charges")
    def service_charges(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        if request.method == "GET":
            charges = booking.service_charges.all()
            return Response(ServiceChargeSerializer(charges, many=True).data)
        data = self._input(ServiceChargeCreateSerializer)
        return self._dispatch(
            commands.AddServiceChargeCommand(booking_id=booking.pk, added_by_id=request.user.pk, **data),
            status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"service-charges/(?P<charge_id>[0-9a-fA-F-]{36})",
    )
    def remove_service_charge(self, request, pk=None, charge_id=None):  # type: ignore
        booking = self.get_object()
        return self._dispatch(commands.RemoveServiceChargeCommand(
            booking_id=booking.pk,
            charge_id=charge_id,
            removed_by_id=request.user.pk,
        ))

    @extend_schema(request=FeeApprovalSerializer)
    @action(detail=True, methods=["post"], url_path="approve-early-check-in")
    def approve_early_check_in(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(FeeApprovalSerializer)
        return self._dispatch(commands.ApproveEarlyCheckInCommand(booking_id=booking.pk, fee=data.get("fee")))

    @extend_schema(request=FeeApprovalSerializer)
    @action(detail=True, methods=["post"], url_path="approve-late-check-out")
    def approve_late_check_out(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(FeeApprovalSerializer)
        return self._dispatch(commands.ApproveLateCheckOutCommand(booking_id=booking.pk, fee=data.get("fee")))

    @extend_schema(request=AdminNotesSerializer)
    @action(detail=True, methods=["post"])
    def notes(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(AdminNotesSerializer)
        return self._dispatch(commands.AddAdminNotesCommand(booking_id=booking.pk, notes=data["notes"]))

    @extend_schema(request=DiscountSerializer)
    @action(detail=True, methods=["post"])
    def discount(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        data = self._input(DiscountSerializer)
        return self._dispatch(commands.ApplyDiscountCommand(booking_id=booking.pk, amount=data["amount"]))

    @action(detail=True, methods=["post"], url_path="mark-cleaned")
    def mark_cleaned(self, request, pk=None):  # type: ignore
        return self._dispatch(commands.MarkRoomCleanedCommand(booking_id=self.get_object().pk))

    # --- notifications ------------------------------------------------------
    @action(detail=True, methods=["post"], url_path="send-confirmation")
    def send_confirmation(self, request, pk=None):  # type: ignore
        from apps.notifications.services import deliver_confirmation

        booking = self.get_object()
        return Response({"booking_number": booking.booking_number, "sent": deliver_confirmation(booking.pk)})

    @action(detail=True, methods=["post"], url_path="send-reminder")
    def send_reminder(self, request, pk=None):  # type: ignore
        from apps.notifications.services import deliver_reminder

        booking = self.get_object()
        return Response({"booking_number": booking.booking_number, "sent": deliver_reminder(booking.pk)})

    @action(detail=False, methods=["post"], url_path="send-bulk-reminders")
    def send_bulk_reminders(self, request):  # type: ignore
        from apps.notifications.services import bulk_check_in_reminders

        return Response({"sent": bulk_check_in_reminders(timezone.localdate())})

    # --- housekeeping / today ----------------------------------------------
    @action(detail=False, methods=["get"], url_path="needs-cleaning")
    def needs_cleaning(self, request):  # type: ignore
        return self._list_response(queries.needing_cleaning())

    @action(detail=False, methods=["get"], url_path="today/check-ins")
    def today_check_ins(self, request):  # type: ignore
        data = self._input(DayQuerySerializer, request.query_params)
        return self._list_response(queries.check_ins_on(data.get("date") or timezone.localdate()))

    @action(detail=False, methods=["get"], url_path="today/check-outs")
    def today_check_outs(self, request):  # type: ignore
        data = self._input(DayQuerySerializer, request.query_params)
        return self._list_response(queries.check_outs_on(data.get("date") or timezone.localdate()))
