"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Every handler that mutates an existing booking loads it with
SELECT FOR UPDATE inside a DjangoUnitOfWork, so two operations on the
same booking never interleave. Creation and date changes lock the room
row before the overlap scan, so the availability check and the write are
one atomic step per room. Domain events are published after commit.

Commands:
- CreateBookingCommand / CreateGroupBookingCommand
- UpdateBookingCommand / CancelBookingCommand
- ConfirmBookingCommand / CheckInBookingCommand / CheckOutBookingCommand
- MarkNoShowCommand / CompleteBookingCommand
- ProcessPaymentCommand / ProcessDepositCommand / RefundBookingCommand
- AddServiceChargeCommand / RemoveServiceChargeCommand
- ApplyDiscountCommand / ApproveEarlyCheckInCommand / ApproveLateCheckOutCommand
- AddAdminNotesCommand / MarkRoomCleanedCommand
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID, uuid4
import logging

from django.utils import timezone  # type: ignore

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Money
from apps.bookings.conf import booking_settings
from apps.bookings.domain.events import BookingCreated, GroupBookingCreated
from apps.bookings.domain.exceptions import (
    BookingError,
    BookingValidationError,
    RoomUnavailableError,
)
from apps.bookings.domain.policies import cancellation_fee, validate_occupancy, validate_stay
from apps.bookings.domain.state_machine import (
    CHARGEABLE_STATUSES,
    CLEANABLE_STATUSES,
    UPDATABLE_STATUSES,
    ensure_status_in,
    ensure_transition,
)
from apps.bookings.domain.statuses import BookingStatus
from apps.bookings.models import Booking, BookingNumberSequence, ServiceCharge
from apps.rooms.models import Room
from apps.rooms import services as rooms
from apps.users import services as users

logger = logging.getLogger(__name__)

# Statuses in which money figures may still be adjusted
ADJUSTABLE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.CHECKED_OUT,
})

# Room statuses the booking engine never overrides when releasing a room
ROOM_STATUSES_KEPT_ON_RELEASE = (
    Room.Status.AVAILABLE,
    Room.Status.CLEANING,
    Room.Status.MAINTENANCE,
    Room.Status.OUT_OF_SERVICE,
)


def _now() -> datetime:
    return timezone.localtime(timezone.now())


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    ``primary_guest`` and each of ``additional_guests`` are dicts with
    full_name, phone, email, national_id, nationality and address.
    """
    user_email: str
    room_id: int
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    primary_guest: Dict[str, Any]
    number_of_children: int = 0
    additional_guests: Sequence[Dict[str, Any]] = ()
    is_early_check_in: bool = False
    is_late_check_out: bool = False
    special_requests: str = ''
    added_services: Sequence[str] = ()
    booking_source: str = 'WEBSITE'


@dataclass
class CreateGroupBookingCommand:
    """
    Command to book several rooms for the same stay in one go

    ``room_bookings[i]`` carries the per-room details (guests, counts,
    requests) for ``room_ids[i]``.
    """
    user_email: str
    room_ids: List[int]
    check_in_date: date
    check_out_date: date
    room_bookings: List[Dict[str, Any]]
    group_name: str = ''
    special_requests: str = ''


@dataclass
class UpdateBookingCommand:
    """Partial update; None means "leave as is" """
    booking_id: int
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = None
    number_of_children: Optional[int] = None
    special_requests: Optional[str] = None
    added_services: Optional[List[str]] = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: int
    reason: str = ''
    cancelled_by_id: Optional[int] = None


@dataclass
class ConfirmBookingCommand:
    booking_id: int


@dataclass
class CheckInBookingCommand:
    """Command to check in a guest, optionally verifying the national ID"""
    booking_id: int
    national_id: Optional[str] = None
    deposit_payment_method: str = ''
    deposit_transaction_id: str = ''
    notes: str = ''


@dataclass
class CheckOutBookingCommand:
    booking_id: int


@dataclass
class MarkNoShowCommand:
    booking_id: int


@dataclass
class CompleteBookingCommand:
    booking_id: int


@dataclass
class ProcessPaymentCommand:
    booking_id: int
    payment_method: str
    transaction_id: str = ''


@dataclass
class ProcessDepositCommand:
    booking_id: int
    payment_method: str
    transaction_id: str = ''


@dataclass
class RefundBookingCommand:
    booking_id: int


@dataclass
class AddServiceChargeCommand:
    booking_id: int
    service_type: str
    description: str
    unit_amount: Decimal
    quantity: int = 1
    added_by_id: Optional[int] = None


@dataclass
class RemoveServiceChargeCommand:
    booking_id: int
    charge_id: UUID
    removed_by_id: Optional[int] = None


@dataclass
class ApplyDiscountCommand:
    booking_id: int
    amount: Decimal


@dataclass
class ApproveEarlyCheckInCommand:
    booking_id: int
    fee: Optional[Decimal] = None


@dataclass
class ApproveLateCheckOutCommand:
    booking_id: int
    fee: Optional[Decimal] = None


@dataclass
class AddAdminNotesCommand:
    booking_id: int
    notes: str


@dataclass
class MarkRoomCleanedCommand:
    booking_id: int


# ===== Command Handlers =====

class BookingHandler:
    """Common wiring: repositories plus the lock-mutate-save cycle"""

    def __init__(self, booking_repo, inventory_repo=None):
        self.booking_repo = booking_repo
        self.inventory_repo = inventory_repo

    def _release_room(self, booking: Booking) -> None:
        """Put the room back on sale unless another stay still holds it"""
        if self.booking_repo.room_still_held(booking.room_id, exclude_booking_id=booking.pk):
            return
        room = rooms.get_room(booking.room_id)
        if room.status in ROOM_STATUSES_KEPT_ON_RELEASE:
            return
        rooms.set_room_status(room.pk, Room.Status.AVAILABLE)


class CreateBookingHandler(BookingHandler):
    """
    Handler for CreateBooking command

    Strategy:
    1. Validate stay dates (pure policy)
    2. Start database transaction (atomic)
    3. Lock the room row (SELECT FOR UPDATE)
    4. Load the RoomInventory and allocate the nights (overlap check)
    5. Price the stay, draw a booking number, insert booking and guests
    6. Commit; BookingCreated is published after commit
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        logger.info(
            f"Creating booking for room {command.room_id}, user {command.user_email}, "
            f"dates {command.check_in_date} - {command.check_out_date}"
        )
        user = users.get_user_by_email(command.user_email)
        now = _now()

        try:
            with DjangoUnitOfWork() as uow:
                booking = self.create_one(command, user, now)
                uow.collect_events(booking)
        except BookingError as e:
            logger.warning(f"Booking for room {command.room_id} rejected: {e.code} - {e.message}")
            raise

        logger.info(
            f"Booking created successfully: {booking.booking_number} "
            f"(ID: {booking.pk}, total {booking.total_amount} {booking.currency})"
        )
        return booking

    def create_one(self, command: CreateBookingCommand, user, now: datetime, group_booking_id: str = '') -> Booking:
        """Create one booking inside the caller's transaction"""
        today = now.date()
        dates = validate_stay(
            command.check_in_date,
            command.check_out_date,
            today=today,
            min_nights=booking_settings.MIN_NIGHTS,
            max_nights=booking_settings.MAX_NIGHTS,
            max_advance_days=booking_settings.MAX_ADVANCE_BOOKING_DAYS,
        )
        if not command.primary_guest or not command.primary_guest.get('full_name'):
            raise BookingValidationError("Primary guest name is required", field='primary_guest')

        room = rooms.lock_room(command.room_id)
        if not room.is_bookable:
            raise RoomUnavailableError(
                f"Room {room.room_number} is not open for booking ({room.status})",
                code='room_not_bookable',
                field='room_id',
                details={'room_id': room.pk, 'room_status': room.status, 'is_active': room.is_active},
            )
        validate_occupancy(command.number_of_guests, room.max_occupancy)

        inventory = self.inventory_repo.for_room(room.pk)
        inventory.allocate(dates)

        booking = Booking(
            booking_number=BookingNumberSequence.next_number(today),
            user=user,
            user_email=user.email,
            user_full_name=user.display_name,
            user_phone=user.phone,
            room=room,
            room_number=room.room_number,
            room_name=room.name,
            room_type=room.room_type,
            group_booking_id=group_booking_id,
            is_group_booking=bool(group_booking_id),
            check_in_date=dates.start_date,
            check_out_date=dates.end_date,
            is_early_check_in=bool(command.is_early_check_in),
            is_late_check_out=bool(command.is_late_check_out),
            number_of_guests=command.number_of_guests,
            number_of_children=command.number_of_children or 0,
            currency=booking_settings.CURRENCY,
            room_price_per_night=room.price_per_night,
            special_requests=command.special_requests or '',
            added_services=list(command.added_services or []),
            booking_source=command.booking_source or Booking.Source.WEBSITE,
            created_at=now,
        )
        booking.reset_deposit(booking.reprice(charges=[]))
        self.booking_repo.save(booking)
        self.booking_repo.add_guests(booking, command.primary_guest, command.additional_guests)
        rooms.increment_booking_count(room.pk)

        booking.add_event(BookingCreated(
            aggregate_id=booking.pk,
            booking_id=booking.pk,
            booking_number=booking.booking_number,
            room_id=room.pk,
            user_id=user.pk,
            check_in_date=booking.check_in_date,
            check_out_date=booking.check_out_date,
            total_amount=booking.total_amount,
            group_booking_id=group_booking_id,
        ))
        return booking


class CreateGroupBookingHandler(BookingHandler):
    """
    Handler for CreateGroupBooking command

    The whole group is one transaction: every room is locked and checked
    before the first insert, and any failure rolls back every member.
    """

    def __init__(self, booking_repo, inventory_repo, create_handler: CreateBookingHandler):
        super().__init__(booking_repo, inventory_repo)
        self.create_handler = create_handler

    def _validate_shape(self, command: CreateGroupBookingCommand) -> None:
        count = len(command.room_ids or [])
        low, high = booking_settings.GROUP_MIN_ROOMS, booking_settings.GROUP_MAX_ROOMS
        if count < low or count > high:
            raise BookingValidationError(
                f"Group booking needs between {low} and {high} rooms, got {count}",
                field='room_ids',
            )
        if len(set(command.room_ids)) != count:
            raise BookingValidationError("A room can appear only once in a group booking", field='room_ids')
        if len(command.room_bookings or []) != count:
            raise BookingValidationError(
                "room_bookings must hold one entry per room in room_ids",
                field='room_bookings',
            )
        for room_id, details in zip(command.room_ids, command.room_bookings):
            if details.get('room_id') not in (None, room_id):
                raise BookingValidationError(
                    f"room_bookings entry for room {details.get('room_id')} does not match room {room_id}",
                    field='room_bookings',
                )

    def handle(self, command: CreateGroupBookingCommand) -> List[Booking]:
        self._validate_shape(command)
        user = users.get_user_by_email(command.user_email)
        now = _now()
        group_booking_id = f"GRP{uuid4().hex[:8].upper()}"
        logger.info(
            f"Creating group booking {group_booking_id} for {len(command.room_ids)} rooms, "
            f"dates {command.check_in_date} - {command.check_out_date}"
        )

        try:
            with DjangoUnitOfWork() as uow:
                self._check_all_rooms(command, now)
                created = []
                for room_id, details in zip(command.room_ids, command.room_bookings):
                    member = CreateBookingCommand(
                        user_email=command.user_email,
                        room_id=room_id,
                        check_in_date=command.check_in_date,
                        check_out_date=command.check_out_date,
                        number_of_guests=details.get('number_of_guests') or 1,
                        primary_guest=details.get('primary_guest') or {},
                        number_of_children=details.get('number_of_children') or 0,
                        additional_guests=details.get('additional_guests') or (),
                        is_early_check_in=details.get('is_early_check_in', False),
                        is_late_check_out=details.get('is_late_check_out', False),
                        special_requests=details.get('special_requests') or command.special_requests,
                        added_services=details.get('added_services') or (),
                        booking_source=details.get('booking_source') or Booking.Source.WEBSITE,
                    )
                    booking = self.create_handler.create_one(member, user, now, group_booking_id)
                    uow.collect_events(booking)
                    created.append(booking)

                group_event = GroupBookingCreated(
                    group_booking_id=group_booking_id,
                    booking_ids=[booking.pk for booking in created],
                    room_ids=list(command.room_ids),
                )
                uow.add_event(group_event)
        except BookingError as e:
            logger.warning(f"Group booking {group_booking_id} rolled back: {e.code} - {e.message}")
            raise

        logger.info(f"Group booking created: {group_booking_id} with {len(created)} rooms")
        return created

    def _check_all_rooms(self, command: CreateGroupBookingCommand, now: datetime) -> None:
        """Lock every room (in id order) and report all unavailable ones at once"""
        dates = validate_stay(
            command.check_in_date,
            command.check_out_date,
            today=now.date(),
            min_nights=booking_settings.MIN_NIGHTS,
            max_nights=booking_settings.MAX_NIGHTS,
            max_advance_days=booking_settings.MAX_ADVANCE_BOOKING_DAYS,
        )
        unavailable = []
        for room_id in sorted(command.room_ids):
            room = rooms.lock_room(room_id)
            inventory = self.inventory_repo.for_room(room.pk)
            if not room.is_bookable or not inventory.can_allocate(dates):
                unavailable.append(room.pk)
        if unavailable:
            raise RoomUnavailableError(
                f"Rooms {', '.join(str(pk) for pk in unavailable)} are not available for {dates}",
                field='room_ids',
                details={'unavailable_room_ids': unavailable},
            )


class UpdateBookingHandler(BookingHandler):
    """
    Handler for UpdateBooking command

    Allowed while PENDING or CONFIRMED. New dates are checked against the
    room inventory excluding the booking itself and trigger repricing.
    """

    def handle(self, command: UpdateBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, UPDATABLE_STATUSES, 'update')

            new_check_in = command.check_in_date or booking.check_in_date
            new_check_out = command.check_out_date or booking.check_out_date
            if (new_check_in, new_check_out) != (booking.check_in_date, booking.check_out_date):
                self._move_dates(booking, new_check_in, new_check_out)

            if command.number_of_guests is not None:
                room = rooms.get_room(booking.room_id)
                validate_occupancy(command.number_of_guests, room.max_occupancy)
                booking.number_of_guests = command.number_of_guests
            if command.number_of_children is not None:
                booking.number_of_children = command.number_of_children
            if command.special_requests is not None:
                booking.special_requests = command.special_requests
            if command.added_services is not None:
                booking.added_services = list(command.added_services)

            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking updated: {booking.booking_number}")
        return booking

    def _move_dates(self, booking: Booking, check_in: date, check_out: date) -> None:
        dates = validate_stay(
            check_in,
            check_out,
            today=_now().date(),
            min_nights=booking_settings.MIN_NIGHTS,
            max_nights=booking_settings.MAX_NIGHTS,
            max_advance_days=booking_settings.MAX_ADVANCE_BOOKING_DAYS,
        )
        room = rooms.lock_room(booking.room_id)
        inventory = self.inventory_repo.for_room(room.pk)
        inventory.allocate(
            dates,
            booking_number=booking.booking_number,
            booking_id=booking.pk,
            exclude_booking_id=booking.pk,
        )
        booking.check_in_date = dates.start_date
        booking.check_out_date = dates.end_date
        breakdown = booking.reprice()
        if not booking.deposit_paid:
            booking.reset_deposit(breakdown)
        logger.info(f"Booking {booking.booking_number} moved to {dates}")


class CancelBookingHandler(BookingHandler):
    """
    Handler for CancelBooking command

    The fee is decided once, from the total as it stands right before
    cancelling. The room goes back on sale if nothing else holds it.
    """

    def handle(self, command: CancelBookingCommand) -> Booking:
        now = _now()
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_transition(booking.status, BookingStatus.CANCELLED)

            fee = cancellation_fee(
                Money(booking.total_amount, booking.currency),
                booking.check_in_date,
                now,
                fee_rate=booking_settings.CANCELLATION_FEE_RATE,
                free_hours=booking_settings.FREE_CANCELLATION_HOURS,
            )
            cancelled_by = users.get_user(command.cancelled_by_id) if command.cancelled_by_id else None
            booking.cancel(now, fee=fee, reason=command.reason, cancelled_by=cancelled_by)
            self.booking_repo.save(booking)
            self._release_room(booking)
            uow.collect_events(booking)

        logger.info(f"Booking cancelled: {booking.booking_number} (fee {fee})")
        return booking


class ConfirmBookingHandler(BookingHandler):
    """Handler for confirming a pending booking"""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.confirm(_now())
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking confirmed: {booking.booking_number}")
        return booking


class CheckInBookingHandler(BookingHandler):
    """
    Handler for CheckIn command

    Requires CONFIRMED and check-in date reached. When a national ID is
    supplied it must match the primary guest's. An unpaid deposit is
    settled with the given method; the room becomes OCCUPIED.
    """

    def handle(self, command: CheckInBookingCommand) -> Booking:
        now = _now()
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_transition(booking.status, BookingStatus.CHECKED_IN)
            if command.national_id:
                self._verify_guest(booking, command.national_id)

            booking.check_in(
                now,
                deposit_method=command.deposit_payment_method,
                deposit_transaction_id=command.deposit_transaction_id,
                notes=command.notes,
            )
            self.booking_repo.save(booking)
            rooms.set_room_status(booking.room_id, Room.Status.OCCUPIED)
            uow.collect_events(booking)

        logger.info(f"Guest checked in: {booking.booking_number}, room {booking.room_number}")
        return booking

    def _verify_guest(self, booking: Booking, national_id: str) -> None:
        primary = booking.primary_guest
        if primary is None or primary.national_id.strip() != national_id.strip():
            raise BookingValidationError(
                f"National ID does not match the primary guest of booking {booking.booking_number}",
                code='guest_verification_failed',
                field='national_id',
            )


class CheckOutBookingHandler(BookingHandler):
    """Handler for CheckOut command; the room goes to CLEANING"""

    def handle(self, command: CheckOutBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.check_out(_now())
            self.booking_repo.save(booking)
            rooms.set_room_status(booking.room_id, Room.Status.CLEANING)
            uow.collect_events(booking)

        logger.info(f"Guest checked out: {booking.booking_number}, room {booking.room_number} needs cleaning")
        return booking


class MarkNoShowHandler(BookingHandler):
    def handle(self, command: MarkNoShowCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.mark_no_show()
            self.booking_repo.save(booking)
            self._release_room(booking)
            uow.collect_events(booking)

        logger.info(f"Booking marked as no-show: {booking.booking_number}")
        return booking


class CompleteBookingHandler(BookingHandler):
    def handle(self, command: CompleteBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.complete()
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking completed: {booking.booking_number}")
        return booking


class ProcessPaymentHandler(BookingHandler):
    """Full payment; a second payment is rejected"""

    def handle(self, command: ProcessPaymentCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.record_payment(_now(), command.payment_method, command.transaction_id)
            self.booking_repo.save(booking)

        logger.info(f"Payment processed for booking {booking.booking_number} via {command.payment_method}")
        return booking


class ProcessDepositHandler(BookingHandler):
    def handle(self, command: ProcessDepositCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.record_deposit(_now(), command.payment_method, command.transaction_id)
            self.booking_repo.save(booking)

        logger.info(f"Deposit {booking.deposit_amount} paid for booking {booking.booking_number}")
        return booking


class RefundBookingHandler(BookingHandler):
    def handle(self, command: RefundBookingCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.refund()
            self.booking_repo.save(booking)

        logger.info(f"Payment refunded for booking {booking.booking_number}")
        return booking


class AddServiceChargeHandler(BookingHandler):
    """Append a charge row and reprice from the non-voided rows"""

    def handle(self, command: AddServiceChargeCommand) -> Booking:
        if command.quantity is None or command.quantity < 1:
            raise BookingValidationError("Quantity must be at least 1", field='quantity')
        if command.unit_amount is None or Decimal(str(command.unit_amount)) < 0:
            raise BookingValidationError("Amount must not be negative", field='unit_amount')

        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, CHARGEABLE_STATUSES, 'add a service charge to')
            ServiceCharge.objects.create(
                booking=booking,
                service_type=command.service_type,
                description=command.description,
                unit_amount=Decimal(str(command.unit_amount)),
                quantity=command.quantity,
                charged_at=_now(),
                added_by_id=command.added_by_id,
            )
            booking.reprice()
            self.booking_repo.save(booking)

        logger.info(
            f"Service charge {command.service_type} x{command.quantity} added to "
            f"{booking.booking_number}; total {booking.total_amount}"
        )
        return booking


class RemoveServiceChargeHandler(BookingHandler):
    """Void a charge by id; the row stays in the log"""

    def handle(self, command: RemoveServiceChargeCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, CHARGEABLE_STATUSES, 'remove a service charge from')
            charge = self.booking_repo.get_charge(booking, command.charge_id)
            charge.voided_at = _now()
            charge.voided_by_id = command.removed_by_id
            charge.save(update_fields=['voided_at', 'voided_by'])
            booking.reprice()
            self.booking_repo.save(booking)

        logger.info(f"Service charge {command.charge_id} voided on {booking.booking_number}")
        return booking


class ApplyDiscountHandler(BookingHandler):
    def handle(self, command: ApplyDiscountCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, ADJUSTABLE_STATUSES, 'discount')
            booking.reprice(discount=command.amount)
            self.booking_repo.save(booking)

        logger.info(f"Discount {booking.discount} applied to {booking.booking_number}")
        return booking


class ApproveEarlyCheckInHandler(BookingHandler):
    """Set the early check-in fee; only for guests who asked for it"""

    def handle(self, command: ApproveEarlyCheckInCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, ADJUSTABLE_STATUSES, 'approve early check-in for')
            if not booking.is_early_check_in:
                raise BookingValidationError(
                    f"Booking {booking.booking_number} did not request early check-in",
                    code='early_check_in_not_requested',
                    field='is_early_check_in',
                )
            fee = booking_settings.DEFAULT_EARLY_CHECK_IN_FEE if command.fee is None else command.fee
            booking.early_check_in_fee = Money(fee, booking.currency).amount
            booking.reprice()
            self.booking_repo.save(booking)

        logger.info(f"Early check-in approved for {booking.booking_number} (fee {booking.early_check_in_fee})")
        return booking


class ApproveLateCheckOutHandler(BookingHandler):
    """Set the late check-out fee; only for guests who asked for it"""

    def handle(self, command: ApproveLateCheckOutCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, ADJUSTABLE_STATUSES, 'approve late check-out for')
            if not booking.is_late_check_out:
                raise BookingValidationError(
                    f"Booking {booking.booking_number} did not request late check-out",
                    code='late_check_out_not_requested',
                    field='is_late_check_out',
                )
            fee = booking_settings.DEFAULT_LATE_CHECK_OUT_FEE if command.fee is None else command.fee
            booking.late_check_out_fee = Money(fee, booking.currency).amount
            booking.reprice()
            self.booking_repo.save(booking)

        logger.info(f"Late check-out approved for {booking.booking_number} (fee {booking.late_check_out_fee})")
        return booking


class AddAdminNotesHandler(BookingHandler):
    def handle(self, command: AddAdminNotesCommand) -> Booking:
        if not (command.notes or '').strip():
            raise BookingValidationError("Notes must not be empty", field='notes')
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            booking.append_admin_note(command.notes, _now())
            self.booking_repo.save(booking)
        return booking


class MarkRoomCleanedHandler(BookingHandler):
    """Housekeeping done after check-out; a room still in CLEANING goes back to AVAILABLE"""

    def handle(self, command: MarkRoomCleanedCommand) -> Booking:
        with DjangoUnitOfWork():
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            ensure_status_in(booking.status, CLEANABLE_STATUSES, 'mark the room cleaned for')
            booking.room_cleaned_after_checkout = True
            self.booking_repo.save(booking)
            room = rooms.lock_room(booking.room_id)
            # The next guest may already be in (OCCUPIED)
            if room.status == Room.Status.CLEANING:
                rooms.set_room_status(room.pk, Room.Status.AVAILABLE)

        logger.info(f"Room {booking.room_number} cleaned after {booking.booking_number}")
        return booking
