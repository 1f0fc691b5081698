"""
Booking Repositories

ORM access for the booking aggregate and the room inventory. Locking
reads (``lock=True``) use SELECT FOR UPDATE and must run inside a
DjangoUnitOfWork.
"""

from datetime import date
from typing import Iterable

from django.db.models import QuerySet  # type: ignore

from apps.bookings.domain.exceptions import BookingNotFound, ServiceChargeNotFound
from apps.bookings.domain.inventory import RoomInventory
from apps.bookings.domain.statuses import BLOCKING_STATUSES, ROOM_HOLDING_STATUSES
from apps.bookings.models import Booking, BookingGuest, ServiceCharge


class BookingRepository:
    """Load and store Booking aggregates"""

    def _queryset(self, lock: bool = False) -> QuerySet:
        if lock:
            # Related rows are fetched separately; FOR UPDATE on a join would
            # also lock the room and user rows.
            return Booking.objects.select_for_update()
        return Booking.objects.select_related('room', 'user').prefetch_related('guests')

    def get_by_id(self, booking_id: int, lock: bool = False) -> Booking:
        try:
            return self._queryset(lock).get(pk=booking_id)
        except (Booking.DoesNotExist, ValueError, TypeError) as exc:
            raise BookingNotFound(f"Booking {booking_id} not found", field='booking_id') from exc

    def get_by_number(self, booking_number: str) -> Booking:
        try:
            return self._queryset().get(booking_number=booking_number)
        except Booking.DoesNotExist as exc:
            raise BookingNotFound(
                f"Booking with number {booking_number} not found",
                field='booking_number',
            ) from exc

    def save(self, booking: Booking) -> Booking:
        booking.save()
        return booking

    def add_guests(self, booking: Booking, primary: dict, additional: Iterable[dict] = ()) -> None:
        rows = [BookingGuest(booking=booking, is_primary=True, position=0, **primary)]
        rows += [
            BookingGuest(booking=booking, is_primary=False, position=index, **guest)
            for index, guest in enumerate(additional, start=1)
        ]
        BookingGuest.objects.bulk_create(rows)

    def get_charge(self, booking: Booking, charge_id) -> ServiceCharge:
        try:
            return booking.service_charges.get(pk=charge_id, voided_at__isnull=True)
        except (ServiceCharge.DoesNotExist, ValueError, TypeError) as exc:
            raise ServiceChargeNotFound(
                f"Service charge {charge_id} not found on booking {booking.booking_number}",
                field='charge_id',
            ) from exc

    def room_still_held(self, room_id: int, exclude_booking_id: int | None = None) -> bool:
        """True while a CONFIRMED or CHECKED_IN booking still references the room"""
        qs = Booking.objects.filter(room_id=room_id, status__in=ROOM_HOLDING_STATUSES)
        if exclude_booking_id is not None:
            qs = qs.exclude(pk=exclude_booking_id)
        return qs.exists()


class InventoryRepository:
    """Build RoomInventory aggregates from the bookings holding a room"""

    def _blocking(self, room_id: int) -> QuerySet:
        return Booking.objects.filter(room_id=room_id, status__in=BLOCKING_STATUSES)

    def for_room(self, room_id: int) -> RoomInventory:
        return RoomInventory.from_bookings(room_id, self._blocking(room_id).only(
            'id', 'booking_number', 'check_in_date', 'check_out_date',
        ))

    def for_window(self, room_id: int, range_start: date, range_end: date) -> RoomInventory:
        """Only the bookings touching [range_start, range_end], check-out day included"""
        bookings = self._blocking(room_id).filter(
            check_in_date__lte=range_end,
            check_out_date__gte=range_start,
        ).only('id', 'booking_number', 'check_in_date', 'check_out_date')
        return RoomInventory.from_bookings(room_id, bookings)
