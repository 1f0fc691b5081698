"""Tests for the booking command handlers (through the message bus)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from shared.application.message_bus import message_bus
from apps.bookings.application import command_handlers as c
from apps.bookings.domain.exceptions import (
    BookingConflictError,
    BookingValidationError,
    InvalidStatusTransition,
    PaymentConflictError,
    RoomNotFound,
    RoomUnavailableError,
    ServiceChargeNotFound,
    UserNotFound,
)
from apps.bookings.domain.statuses import BookingStatus, PaymentStatus
from apps.bookings.infrastructure.repositories import BookingRepository, InventoryRepository
from apps.bookings.models import Booking, BookingGuest, ServiceCharge
from apps.bookings.tests.helpers import frozen_now, guest, local_dt, make_room, make_user
from apps.rooms.models import Room
from apps.rooms import services as rooms_services

BOOKING_DAY = local_dt(2025, 6, 1, 10, 0)


def dispatch(command):
    return message_bus.handle_command(command)


class BookingHandlerTestCase(TestCase):
    def setUp(self) -> None:
        self.user = make_user()
        self.room = make_room("101", price="1000000", max_occupancy=2)

    def create(self, room=None, check_in=date(2025, 6, 10), check_out=date(2025, 6, 13), **extra) -> Booking:
        extra.setdefault("number_of_guests", 2)
        extra.setdefault("primary_guest", guest())
        with frozen_now(extra.pop("now", BOOKING_DAY)):
            return dispatch(c.CreateBookingCommand(
                user_email=self.user.email,
                room_id=(room or self.room).pk,
                check_in_date=check_in,
                check_out_date=check_out,
                **extra,
            ))

    def run_at(self, moment, command):
        with frozen_now(moment):
            return dispatch(command)

    def assertPricingConsistent(self, booking: Booking) -> None:
        booking.refresh_from_db()
        expected = (
            booking.subtotal
            + booking.tax_amount
            + booking.service_charge
            + booking.early_check_in_fee
            + booking.late_check_out_fee
            + booking.additional_charges_total
            - booking.discount
            - booking.cancellation_fee
        )
        self.assertEqual(booking.total_amount, expected)


class CreateBookingTests(BookingHandlerTestCase):
    def test_prices_and_snapshots_new_booking(self) -> None:
        booking = self.create()

        self.assertEqual(booking.status, BookingStatus.PENDING)
        self.assertEqual(booking.booking_number, "BK202506010001")
        self.assertEqual(booking.number_of_nights, 3)
        self.assertEqual(booking.subtotal, Decimal("3000000.00"))
        self.assertEqual(booking.tax_amount, Decimal("300000.00"))
        self.assertEqual(booking.service_charge, Decimal("150000.00"))
        self.assertEqual(booking.total_amount, Decimal("3450000.00"))
        self.assertEqual(booking.deposit_amount, Decimal("1035000.00"))
        self.assertEqual(booking.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(booking.room_number, "101")
        self.assertEqual(booking.user_full_name, "Nguyen Van A")
        self.assertPricingConsistent(booking)

        self.room.refresh_from_db()
        self.assertEqual(self.room.total_bookings, 1)
        self.assertIsNotNone(self.room.last_booked_at)

    def test_room_edits_do_not_rewrite_history(self) -> None:
        booking = self.create()
        Room.objects.filter(pk=self.room.pk).update(name="Renamed", price_per_night=Decimal("5"))
        booking.refresh_from_db()
        self.assertEqual(booking.room_name, "Room 101")
        self.assertEqual(booking.room_price_per_night, Decimal("1000000.00"))

    def test_guests_are_stored_in_order(self) -> None:
        booking = self.create(additional_guests=[guest("Tran Thi B", "079000000001")])
        names = list(BookingGuest.objects.filter(booking=booking).values_list("full_name", "is_primary"))
        self.assertEqual(names, [("Nguyen Van A", True), ("Tran Thi B", False)])

    def test_overlapping_request_is_rejected(self) -> None:
        self.create()
        with self.assertRaises(RoomUnavailableError) as ctx:
            self.create(check_in=date(2025, 6, 12), check_out=date(2025, 6, 14))
        self.assertEqual(ctx.exception.details["conflicting_dates"], ["2025-06-12"])
        self.assertEqual(Booking.objects.count(), 1)

    def test_back_to_back_is_accepted_and_numbers_increase(self) -> None:
        self.create()
        second = self.create(check_in=date(2025, 6, 13), check_out=date(2025, 6, 14))
        self.assertEqual(second.booking_number, "BK202506010002")

    def test_cancelled_booking_frees_the_dates(self) -> None:
        first = self.create()
        self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=first.pk))
        self.create(check_in=date(2025, 6, 11), check_out=date(2025, 6, 12))
        self.assertEqual(Booking.objects.filter(status=BookingStatus.PENDING).count(), 1)

    def test_capacity_is_enforced(self) -> None:
        with self.assertRaises(BookingValidationError) as ctx:
            self.create(number_of_guests=3)
        self.assertEqual(ctx.exception.field, "number_of_guests")
        self.assertFalse(Booking.objects.exists())

    def test_room_in_maintenance_cannot_be_booked(self) -> None:
        Room.objects.filter(pk=self.room.pk).update(status=Room.Status.MAINTENANCE)
        with self.assertRaises(RoomUnavailableError) as ctx:
            self.create()
        self.assertEqual(ctx.exception.code, "room_not_bookable")

    def test_past_dates_are_rejected(self) -> None:
        with self.assertRaises(BookingValidationError):
            self.create(check_in=date(2025, 5, 30), check_out=date(2025, 6, 2))

    def test_unknown_room_and_user(self) -> None:
        with self.assertRaises(RoomNotFound):
            self.create(room=Room(pk=9999))
        with frozen_now(BOOKING_DAY), self.assertRaises(UserNotFound):
            dispatch(c.CreateBookingCommand(
                user_email="nobody@example.com",
                room_id=self.room.pk,
                check_in_date=date(2025, 6, 10),
                check_out_date=date(2025, 6, 11),
                number_of_guests=1,
                primary_guest=guest(),
            ))

    def test_confirmation_is_queued_after_commit(self) -> None:
        with mock.patch("apps.notifications.tasks.send_booking_confirmation.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                booking = self.create()
        delay.assert_called_once_with(booking.pk)

    def test_queue_failure_does_not_undo_booking(self) -> None:
        with mock.patch(
            "apps.notifications.tasks.send_booking_confirmation.delay",
            side_effect=ConnectionError("broker down"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                booking = self.create()
        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())


class GroupBookingTests(BookingHandlerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.room_b = make_room("102", price="800000", max_occupancy=2)
        self.room_c = make_room("103", price="1200000", max_occupancy=1)

    def group(self, room_ids, room_bookings=None):
        room_bookings = room_bookings or [
            {"number_of_guests": 1, "primary_guest": guest(f"Guest {room_id}")} for room_id in room_ids
        ]
        return self.run_at(BOOKING_DAY, c.CreateGroupBookingCommand(
            user_email=self.user.email,
            room_ids=room_ids,
            check_in_date=date(2025, 6, 10),
            check_out_date=date(2025, 6, 12),
            room_bookings=room_bookings,
        ))

    def test_creates_linked_bookings(self) -> None:
        bookings = self.group([self.room.pk, self.room_b.pk])
        self.assertEqual(len(bookings), 2)
        group_id = bookings[0].group_booking_id
        self.assertTrue(group_id.startswith("GRP"))
        self.assertEqual(len(group_id), 11)
        self.assertTrue(all(b.is_group_booking and b.group_booking_id == group_id for b in bookings))

    def test_unavailable_room_fails_whole_group(self) -> None:
        self.create(room=self.room_b, check_in=date(2025, 6, 11), check_out=date(2025, 6, 13))
        with self.assertRaises(RoomUnavailableError) as ctx:
            self.group([self.room.pk, self.room_b.pk])
        self.assertEqual(ctx.exception.details["unavailable_room_ids"], [self.room_b.pk])
        self.assertEqual(Booking.objects.count(), 1)

    def test_failure_after_first_insert_rolls_back_everything(self) -> None:
        room_bookings = [
            {"number_of_guests": 1, "primary_guest": guest("Guest A")},
            {"number_of_guests": 2, "primary_guest": guest("Guest C")},
        ]
        with self.assertRaises(BookingValidationError):
            self.group([self.room.pk, self.room_c.pk], room_bookings)
        self.assertFalse(Booking.objects.exists())
        self.room.refresh_from_db()
        self.assertEqual(self.room.total_bookings, 0)

    def test_group_size_limits(self) -> None:
        with self.assertRaises(BookingValidationError):
            self.group([self.room.pk])
        with self.assertRaises(BookingValidationError):
            self.group([self.room.pk, self.room.pk])

    def test_room_details_must_match_rooms(self) -> None:
        with self.assertRaises(BookingValidationError) as ctx:
            self.group([self.room.pk, self.room_b.pk], [{"number_of_guests": 1, "primary_guest": guest()}])
        self.assertEqual(ctx.exception.field, "room_bookings")


class UpdateBookingTests(BookingHandlerTestCase):
    def test_new_dates_reprice_and_reset_deposit(self) -> None:
        booking = self.create()
        updated = self.run_at(BOOKING_DAY, c.UpdateBookingCommand(
            booking_id=booking.pk, check_out_date=date(2025, 6, 15),
        ))
        self.assertEqual(updated.number_of_nights, 5)
        self.assertEqual(updated.total_amount, Decimal("5750000.00"))
        self.assertEqual(updated.deposit_amount, Decimal("1725000.00"))
        self.assertPricingConsistent(updated)

    def test_moving_over_itself_is_allowed(self) -> None:
        booking = self.create()
        updated = self.run_at(BOOKING_DAY, c.UpdateBookingCommand(
            booking_id=booking.pk, check_in_date=date(2025, 6, 11), check_out_date=date(2025, 6, 14),
        ))
        self.assertEqual(updated.check_in_date, date(2025, 6, 11))

    def test_moving_onto_another_booking_is_rejected(self) -> None:
        booking = self.create()
        self.create(check_in=date(2025, 6, 13), check_out=date(2025, 6, 15))
        with self.assertRaises(RoomUnavailableError):
            self.run_at(BOOKING_DAY, c.UpdateBookingCommand(
                booking_id=booking.pk, check_out_date=date(2025, 6, 14),
            ))
        booking.refresh_from_db()
        self.assertEqual(booking.check_out_date, date(2025, 6, 13))

    def test_guest_count_checked_against_capacity(self) -> None:
        booking = self.create()
        with self.assertRaises(BookingValidationError):
            self.run_at(BOOKING_DAY, c.UpdateBookingCommand(booking_id=booking.pk, number_of_guests=5))

    def test_update_after_check_in_is_rejected(self) -> None:
        booking = self.create()
        Booking.objects.filter(pk=booking.pk).update(status=BookingStatus.CHECKED_IN)
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.UpdateBookingCommand(booking_id=booking.pk, special_requests="x"))


class CancellationTests(BookingHandlerTestCase):
    def test_free_cancellation_more_than_a_day_ahead(self) -> None:
        booking = self.create()
        cancelled = self.run_at(local_dt(2025, 6, 8, 23, 0), c.CancelBookingCommand(
            booking_id=booking.pk, reason="Change of plans", cancelled_by_id=self.user.pk,
        ))
        self.assertEqual(cancelled.status, BookingStatus.CANCELLED)
        self.assertEqual(cancelled.cancellation_fee, Decimal("0.00"))
        self.assertEqual(cancelled.total_amount, Decimal("3450000.00"))
        self.assertEqual(cancelled.cancelled_by_id, self.user.pk)

    def test_late_cancellation_charges_twenty_percent(self) -> None:
        booking = self.create()
        cancelled = self.run_at(local_dt(2025, 6, 9, 11, 0), c.CancelBookingCommand(booking_id=booking.pk))
        self.assertEqual(cancelled.cancellation_fee, Decimal("690000.00"))
        self.assertEqual(cancelled.total_amount, Decimal("2760000.00"))
        self.assertPricingConsistent(cancelled)

    def test_cancelled_is_terminal(self) -> None:
        booking = self.create()
        self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=booking.pk))
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))

    def test_room_released_when_nothing_else_holds_it(self) -> None:
        booking = self.create()
        Room.objects.filter(pk=self.room.pk).update(status=Room.Status.RESERVED)
        self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.AVAILABLE)

    def test_room_kept_while_another_booking_holds_it(self) -> None:
        booking = self.create()
        other = self.create(check_in=date(2025, 6, 20), check_out=date(2025, 6, 21))
        self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=other.pk))
        Room.objects.filter(pk=self.room.pk).update(status=Room.Status.RESERVED)
        self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.RESERVED)


class StayLifecycleTests(BookingHandlerTestCase):
    def confirmed(self) -> Booking:
        booking = self.create()
        return self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=booking.pk))

    def test_confirm_sets_timestamp(self) -> None:
        booking = self.confirmed()
        self.assertEqual(booking.status, BookingStatus.CONFIRMED)
        self.assertEqual(booking.confirmed_at, BOOKING_DAY)

    def test_check_in_before_arrival_day_is_rejected(self) -> None:
        booking = self.confirmed()
        with self.assertRaises(BookingConflictError) as ctx:
            self.run_at(local_dt(2025, 6, 9, 20, 0), c.CheckInBookingCommand(booking_id=booking.pk))
        self.assertEqual(ctx.exception.code, "check_in_too_early")

    def test_check_in_requires_confirmation(self) -> None:
        booking = self.create()
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(local_dt(2025, 6, 10, 14, 0), c.CheckInBookingCommand(booking_id=booking.pk))

    def test_national_id_must_match_primary_guest(self) -> None:
        booking = self.confirmed()
        with self.assertRaises(BookingValidationError) as ctx:
            self.run_at(local_dt(2025, 6, 10, 14, 0), c.CheckInBookingCommand(
                booking_id=booking.pk, national_id="000000000000",
            ))
        self.assertEqual(ctx.exception.code, "guest_verification_failed")
        booking.refresh_from_db()
        self.assertEqual(booking.status, BookingStatus.CONFIRMED)

    def test_full_stay(self) -> None:
        booking = self.confirmed()
        checked_in = self.run_at(local_dt(2025, 6, 10, 14, 0), c.CheckInBookingCommand(
            booking_id=booking.pk,
            national_id="079123456789",
            deposit_payment_method="CASH",
            notes="Late arrival",
        ))
        self.assertEqual(checked_in.status, BookingStatus.CHECKED_IN)
        self.assertTrue(checked_in.deposit_paid)
        self.assertEqual(checked_in.deposit_payment_method, "CASH")
        self.assertEqual(checked_in.payment_status, PaymentStatus.PARTIALLY_PAID)
        self.assertIn("Late arrival", checked_in.admin_notes)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.OCCUPIED)

        checked_out = self.run_at(local_dt(2025, 6, 13, 11, 0), c.CheckOutBookingCommand(booking_id=booking.pk))
        self.assertEqual(checked_out.status, BookingStatus.CHECKED_OUT)
        self.assertFalse(checked_out.room_cleaned_after_checkout)
        self.assertIsNotNone(checked_out.actual_check_out_time)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.CLEANING)

        cleaned = self.run_at(local_dt(2025, 6, 13, 12, 0), c.MarkRoomCleanedCommand(booking_id=booking.pk))
        self.assertTrue(cleaned.room_cleaned_after_checkout)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.AVAILABLE)

        completed = self.run_at(local_dt(2025, 6, 13, 12, 0), c.CompleteBookingCommand(booking_id=booking.pk))
        self.assertEqual(completed.status, BookingStatus.COMPLETED)
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(local_dt(2025, 6, 13, 12, 0), c.CheckOutBookingCommand(booking_id=booking.pk))

    def test_no_show_only_when_confirmed(self) -> None:
        booking = self.create()
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.MarkNoShowCommand(booking_id=booking.pk))
        self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=booking.pk))
        no_show = self.run_at(local_dt(2025, 6, 11, 9, 0), c.MarkNoShowCommand(booking_id=booking.pk))
        self.assertEqual(no_show.status, BookingStatus.NO_SHOW)

    def test_mark_cleaned_requires_check_out(self) -> None:
        booking = self.confirmed()
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.MarkRoomCleanedCommand(booking_id=booking.pk))

    def test_late_cleaning_keeps_next_guest_occupied(self) -> None:
        first = self.confirmed()
        second = self.create(check_in=date(2025, 6, 13), check_out=date(2025, 6, 15))
        self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=second.pk))

        self.run_at(local_dt(2025, 6, 10, 14, 0), c.CheckInBookingCommand(booking_id=first.pk))
        self.run_at(local_dt(2025, 6, 13, 10, 0), c.CheckOutBookingCommand(booking_id=first.pk))
        self.run_at(local_dt(2025, 6, 13, 14, 0), c.CheckInBookingCommand(booking_id=second.pk))

        cleaned = self.run_at(local_dt(2025, 6, 13, 16, 0), c.MarkRoomCleanedCommand(booking_id=first.pk))
        self.assertTrue(cleaned.room_cleaned_after_checkout)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.OCCUPIED)


class PaymentTests(BookingHandlerTestCase):
    def test_double_payment_is_rejected(self) -> None:
        booking = self.create()
        paid = self.run_at(BOOKING_DAY, c.ProcessPaymentCommand(
            booking_id=booking.pk, payment_method="CREDIT_CARD", transaction_id="TX-1",
        ))
        self.assertEqual(paid.payment_status, PaymentStatus.PAID)
        self.assertEqual(paid.payment_date, BOOKING_DAY)
        with self.assertRaises(PaymentConflictError) as ctx:
            self.run_at(BOOKING_DAY, c.ProcessPaymentCommand(booking_id=booking.pk, payment_method="CASH"))
        self.assertEqual(ctx.exception.code, "already_paid")

    def test_deposit_once(self) -> None:
        booking = self.create()
        deposit = self.run_at(BOOKING_DAY, c.ProcessDepositCommand(booking_id=booking.pk, payment_method="CASH"))
        self.assertTrue(deposit.deposit_paid)
        self.assertEqual(deposit.payment_status, PaymentStatus.PARTIALLY_PAID)
        with self.assertRaises(PaymentConflictError):
            self.run_at(BOOKING_DAY, c.ProcessDepositCommand(booking_id=booking.pk, payment_method="CASH"))

    def test_refund_only_for_paid_and_cancelled(self) -> None:
        booking = self.create()
        self.run_at(BOOKING_DAY, c.ProcessPaymentCommand(booking_id=booking.pk, payment_method="CASH"))
        with self.assertRaises(PaymentConflictError):
            self.run_at(BOOKING_DAY, c.RefundBookingCommand(booking_id=booking.pk))
        self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))
        refunded = self.run_at(BOOKING_DAY, c.RefundBookingCommand(booking_id=booking.pk))
        self.assertEqual(refunded.payment_status, PaymentStatus.REFUNDED)


class ChargesAndAdjustmentsTests(BookingHandlerTestCase):
    def checked_in(self, **extra) -> Booking:
        booking = self.create(**extra)
        self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=booking.pk))
        return self.run_at(local_dt(2025, 6, 10, 14, 0), c.CheckInBookingCommand(booking_id=booking.pk))

    def test_charges_are_added_and_voided_by_id(self) -> None:
        booking = self.checked_in()
        with_charge = self.run_at(local_dt(2025, 6, 11, 9, 0), c.AddServiceChargeCommand(
            booking_id=booking.pk,
            service_type="MINIBAR",
            description="Water",
            unit_amount=Decimal("50000"),
            quantity=2,
            added_by_id=self.user.pk,
        ))
        self.assertEqual(with_charge.additional_charges_total, Decimal("100000.00"))
        self.assertEqual(with_charge.total_amount, Decimal("3550000.00"))
        self.assertPricingConsistent(with_charge)

        charge = ServiceCharge.objects.get(booking=booking)
        without = self.run_at(local_dt(2025, 6, 11, 10, 0), c.RemoveServiceChargeCommand(
            booking_id=booking.pk, charge_id=charge.pk,
        ))
        self.assertEqual(without.additional_charges_total, Decimal("0.00"))
        self.assertEqual(without.total_amount, Decimal("3450000.00"))
        charge.refresh_from_db()
        self.assertTrue(charge.is_voided)

        with self.assertRaises(ServiceChargeNotFound):
            self.run_at(local_dt(2025, 6, 11, 10, 0), c.RemoveServiceChargeCommand(
                booking_id=booking.pk, charge_id=charge.pk,
            ))

    def test_charges_need_a_stay_in_progress(self) -> None:
        booking = self.create()
        with self.assertRaises(InvalidStatusTransition):
            self.run_at(BOOKING_DAY, c.AddServiceChargeCommand(
                booking_id=booking.pk, service_type="SPA", description="Massage", unit_amount=Decimal("1"),
            ))

    def test_discount_bounds(self) -> None:
        booking = self.create()
        discounted = self.run_at(BOOKING_DAY, c.ApplyDiscountCommand(booking_id=booking.pk, amount=Decimal("450000")))
        self.assertEqual(discounted.total_amount, Decimal("3000000.00"))
        with self.assertRaises(BookingValidationError):
            self.run_at(BOOKING_DAY, c.ApplyDiscountCommand(booking_id=booking.pk, amount=Decimal("3000000.01")))

    def test_early_check_in_fee_only_when_requested(self) -> None:
        plain = self.create()
        with self.assertRaises(BookingValidationError):
            self.run_at(BOOKING_DAY, c.ApproveEarlyCheckInCommand(booking_id=plain.pk))

        early = self.create(
            check_in=date(2025, 6, 20), check_out=date(2025, 6, 21), is_early_check_in=True, is_late_check_out=True,
        )
        self.assertEqual(early.early_check_in_fee, Decimal("0.00"))
        approved = self.run_at(BOOKING_DAY, c.ApproveEarlyCheckInCommand(booking_id=early.pk))
        self.assertEqual(approved.early_check_in_fee, Decimal("100000.00"))
        approved = self.run_at(BOOKING_DAY, c.ApproveLateCheckOutCommand(booking_id=early.pk, fee=Decimal("75000")))
        self.assertEqual(approved.late_check_out_fee, Decimal("75000.00"))
        self.assertEqual(approved.total_amount, Decimal("1325000.00"))
        self.assertPricingConsistent(approved)

    def test_admin_notes_are_appended(self) -> None:
        booking = self.create()
        self.run_at(BOOKING_DAY, c.AddAdminNotesCommand(booking_id=booking.pk, notes="VIP"))
        noted = self.run_at(BOOKING_DAY, c.AddAdminNotesCommand(booking_id=booking.pk, notes="Airport pickup"))
        self.assertEqual(noted.admin_notes.count("\n"), 1)
        self.assertIn("VIP", noted.admin_notes)
        self.assertIn("Airport pickup", noted.admin_notes)


class LockingTests(BookingHandlerTestCase):
    """Every overlap check runs under the room's row lock; transitions lock the booking."""

    def setUp(self) -> None:
        super().setUp()
        self.room_b = make_room("102", price="800000", max_occupancy=2)
        self.trace: list[tuple[str, int]] = []

        real_lock = rooms_services.lock_room
        real_for_room = InventoryRepository.for_room

        def lock_room(room_id):
            self.trace.append(("lock", room_id))
            return real_lock(room_id)

        def for_room(repo, room_id):
            self.trace.append(("inventory", room_id))
            return real_for_room(repo, room_id)

        patchers = [
            mock.patch("apps.rooms.services.lock_room", side_effect=lock_room),
            mock.patch.object(InventoryRepository, "for_room", autospec=True, side_effect=for_room),
        ]
        for patcher in patchers:
            patcher.start()
        self.addCleanup(mock.patch.stopall)

    def assertInventoryReadsLocked(self, expected_reads: int) -> None:
        reads = [index for index, (kind, _) in enumerate(self.trace) if kind == "inventory"]
        self.assertEqual(len(reads), expected_reads, self.trace)
        for index in reads:
            room_id = self.trace[index][1]
            self.assertIn(("lock", room_id), self.trace[:index], self.trace)

    def test_create_locks_room_before_overlap_check(self) -> None:
        self.create()
        self.assertEqual(self.trace[0], ("lock", self.room.pk))
        self.assertInventoryReadsLocked(1)

    def test_group_create_locks_every_room(self) -> None:
        self.run_at(BOOKING_DAY, c.CreateGroupBookingCommand(
            user_email=self.user.email,
            room_ids=[self.room_b.pk, self.room.pk],
            check_in_date=date(2025, 6, 10),
            check_out_date=date(2025, 6, 12),
            room_bookings=[
                {"number_of_guests": 1, "primary_guest": guest("Guest B")},
                {"number_of_guests": 1, "primary_guest": guest("Guest A")},
            ],
        ))
        locks = [room_id for kind, room_id in self.trace if kind == "lock"]
        self.assertEqual(locks[:2], sorted([self.room.pk, self.room_b.pk]))
        self.assertInventoryReadsLocked(4)

    def test_date_move_locks_room(self) -> None:
        booking = self.create()
        self.trace.clear()
        self.run_at(BOOKING_DAY, c.UpdateBookingCommand(
            booking_id=booking.pk, check_in_date=date(2025, 6, 11), check_out_date=date(2025, 6, 14),
        ))
        self.assertEqual(self.trace[0], ("lock", self.room.pk))
        self.assertInventoryReadsLocked(1)

    def test_transitions_load_booking_for_update(self) -> None:
        booking = self.create()
        with mock.patch.object(
            BookingRepository, "get_by_id", autospec=True, side_effect=BookingRepository.get_by_id,
        ) as get_by_id:
            self.run_at(BOOKING_DAY, c.ConfirmBookingCommand(booking_id=booking.pk))
            self.run_at(BOOKING_DAY, c.ProcessDepositCommand(booking_id=booking.pk, payment_method="CASH"))
            self.run_at(BOOKING_DAY, c.CancelBookingCommand(booking_id=booking.pk))

        self.assertEqual(get_by_id.call_count, 3)
        for call in get_by_id.call_args_list:
            self.assertIs(call.kwargs.get("lock"), True)
