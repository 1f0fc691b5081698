"""Booking models for the hotel back office.

``Booking`` is the aggregate root of the booking lifecycle. It keeps
point-in-time snapshots of the guest account and the room (number, name,
type, nightly rate) so later edits of users or rooms never rewrite
history. Lifecycle methods on the model apply one state-machine edge,
update the affected fields and record a domain event; the command
handlers take the locks, persist and publish.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import RecordsEvents
from shared.domain.value_objects import DateRange, Money
from apps.bookings.conf import booking_settings
from apps.bookings.domain import events
from apps.bookings.domain.exceptions import BookingConflictError, PaymentConflictError
from apps.bookings.domain.pricing import PriceBreakdown, calculate_price
from apps.bookings.domain.state_machine import ensure_transition
from apps.bookings.domain.statuses import (
    BookingSource,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    ServiceType,
)

MONEY = {"max_digits": 14, "decimal_places": 2, "default": Decimal("0.00")}


class Booking(RecordsEvents, models.Model):
    """Reservation of one room for a contiguous stay by one guest party."""

    Status = BookingStatus
    PaymentStatus = PaymentStatus
    PaymentMethod = PaymentMethod
    Source = BookingSource

    booking_number = models.CharField(max_length=14, unique=True, editable=False)

    # Account that made the booking, with a contact snapshot
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    user_email = models.EmailField(blank=True)
    user_full_name = models.CharField(max_length=255, blank=True)
    user_phone = models.CharField(max_length=20, blank=True)

    # Room snapshot
    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    room_number = models.CharField(max_length=20, blank=True)
    room_name = models.CharField(max_length=255, blank=True)
    room_type = models.CharField(max_length=20, blank=True)

    group_booking_id = models.CharField(max_length=16, blank=True, db_index=True)
    is_group_booking = models.BooleanField(default=False)

    check_in_date = models.DateField()
    check_out_date = models.DateField()
    actual_check_in_time = models.DateTimeField(null=True, blank=True)
    actual_check_out_time = models.DateTimeField(null=True, blank=True)

    is_early_check_in = models.BooleanField(default=False)
    early_check_in_fee = models.DecimalField(**MONEY)
    is_late_check_out = models.BooleanField(default=False)
    late_check_out_fee = models.DecimalField(**MONEY)

    number_of_guests = models.PositiveSmallIntegerField(default=1)
    number_of_children = models.PositiveSmallIntegerField(default=0)

    # Pricing (always written from a PriceBreakdown)
    currency = models.CharField(max_length=3, default="VND")
    room_price_per_night = models.DecimalField(**MONEY)
    number_of_nights = models.PositiveSmallIntegerField(default=1)
    subtotal = models.DecimalField(**MONEY)
    tax_amount = models.DecimalField(**MONEY)
    service_charge = models.DecimalField(**MONEY)
    discount = models.DecimalField(**MONEY)
    additional_charges_total = models.DecimalField(**MONEY)
    total_amount = models.DecimalField(**MONEY)

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    payment_transaction_id = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)

    deposit_amount = models.DecimalField(**MONEY)
    deposit_paid = models.BooleanField(default=False)
    deposit_paid_date = models.DateTimeField(null=True, blank=True)
    deposit_payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    deposit_transaction_id = models.CharField(max_length=100, blank=True)

    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
    )

    special_requests = models.TextField(blank=True)
    added_services = models.JSONField(default=list, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_bookings",
    )
    cancellation_fee = models.DecimalField(**MONEY)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    admin_notes = models.TextField(blank=True)
    booking_source = models.CharField(
        max_length=20,
        choices=BookingSource.choices,
        default=BookingSource.WEBSITE,
    )
    room_cleaned_after_checkout = models.BooleanField(null=True, blank=True)
    confirmation_email_sent = models.BooleanField(default=False)
    reminder_email_sent = models.BooleanField(default=False)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out_date__gt=models.F("check_in_date")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="booking_non_negative_total",
            ),
        ]
        indexes = [
            models.Index(fields=["room", "check_in_date", "check_out_date"], name="booking_room_dates_idx"),
            models.Index(fields=["user", "status"], name="booking_user_status_idx"),
            models.Index(fields=["status", "check_in_date"], name="booking_status_checkin_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_number} room {self.room_number}"

    # --- Read helpers -------------------------------------------------------
    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in_date, self.check_out_date)

    @property
    def primary_guest(self) -> "BookingGuest | None":
        return next((guest for guest in self.guests.all() if guest.is_primary), None)

    @property
    def additional_guests(self) -> list["BookingGuest"]:
        return [guest for guest in self.guests.all() if not guest.is_primary]

    def active_charges(self) -> list["ServiceCharge"]:
        if self.pk is None:
            return []
        return list(self.service_charges.filter(voided_at__isnull=True).order_by("charged_at"))

    # --- Pricing ------------------------------------------------------------
    def quote(self, *, discount=None, charges=None) -> PriceBreakdown:
        """Breakdown for the current inputs, optionally with a new discount"""
        return calculate_price(
            Money(self.room_price_per_night, self.currency),
            self.stay,
            tax_rate=booking_settings.TAX_RATE,
            service_charge_rate=booking_settings.SERVICE_CHARGE_RATE,
            discount=self.discount if discount is None else discount,
            early_check_in_fee=self.early_check_in_fee,
            late_check_out_fee=self.late_check_out_fee,
            charges=self.active_charges() if charges is None else charges,
            currency=self.currency,
        )

    def apply_pricing(self, breakdown: PriceBreakdown) -> None:
        """Write a breakdown onto the booking; a cancellation fee stays deducted"""
        for name, value in breakdown.as_fields().items():
            setattr(self, name, value)
        self.total_amount = (breakdown.total - Money(self.cancellation_fee, self.currency)).amount

    def reprice(self, **kwargs) -> PriceBreakdown:
        breakdown = self.quote(**kwargs)
        self.apply_pricing(breakdown)
        return breakdown

    def reset_deposit(self, breakdown: PriceBreakdown) -> None:
        self.deposit_amount = breakdown.deposit(booking_settings.DEPOSIT_RATE).amount

    # --- Lifecycle ----------------------------------------------------------
    def _transition(self, target: str) -> str:
        previous = self.status
        ensure_transition(previous, target)
        self.status = target
        return previous

    def confirm(self, now: datetime) -> None:
        self._transition(BookingStatus.CONFIRMED)
        self.confirmed_at = now
        self.add_event(events.BookingConfirmed(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
        ))

    def check_in(
        self,
        now: datetime,
        *,
        deposit_method: str = "",
        deposit_transaction_id: str = "",
        notes: str = "",
    ) -> None:
        if self.status == BookingStatus.CONFIRMED and self.check_in_date > timezone.localdate(now):
            raise BookingConflictError(
                f"Check-in for booking {self.booking_number} opens on {self.check_in_date}",
                code="check_in_too_early",
                field="check_in_date",
            )
        self._transition(BookingStatus.CHECKED_IN)
        self.actual_check_in_time = now
        if not self.deposit_paid:
            self.deposit_paid = True
            self.deposit_paid_date = now
            self.deposit_payment_method = deposit_method or ""
            self.deposit_transaction_id = deposit_transaction_id or ""
            if self.payment_status == PaymentStatus.UNPAID:
                self.payment_status = PaymentStatus.PARTIALLY_PAID
        if notes:
            self.append_admin_note(notes, now)
        self.add_event(events.BookingCheckedIn(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
            room_id=self.room_id,
        ))

    def check_out(self, now: datetime) -> None:
        self._transition(BookingStatus.CHECKED_OUT)
        self.actual_check_out_time = now
        self.room_cleaned_after_checkout = False
        self.add_event(events.BookingCheckedOut(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
            room_id=self.room_id,
        ))

    def complete(self) -> None:
        self._transition(BookingStatus.COMPLETED)
        self.add_event(events.BookingCompleted(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
            user_id=self.user_id,
        ))

    def mark_no_show(self) -> None:
        self._transition(BookingStatus.NO_SHOW)
        self.add_event(events.BookingMarkedNoShow(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
            room_id=self.room_id,
        ))

    def cancel(self, now: datetime, *, fee: Money, reason: str = "", cancelled_by=None) -> None:
        """
        Cancel with a fee computed from the total before cancelling.

        The fee is deducted from total_amount and kept in cancellation_fee.
        """
        previous = self._transition(BookingStatus.CANCELLED)
        self.cancelled_at = now
        self.cancellation_reason = reason or ""
        self.cancelled_by = cancelled_by
        self.cancellation_fee = fee.amount
        self.total_amount = (Money(self.total_amount, self.currency) - fee).amount
        self.add_event(events.BookingCancelled(
            aggregate_id=self.pk,
            booking_id=self.pk,
            booking_number=self.booking_number,
            room_id=self.room_id,
            reason=self.cancellation_reason,
            cancellation_fee=fee.amount,
            old_status=str(previous),
            cancelled_by=getattr(cancelled_by, "pk", None),
        ))

    # --- Payments -----------------------------------------------------------
    def record_payment(self, now: datetime, method: str, transaction_id: str = "") -> None:
        if self.payment_status == PaymentStatus.PAID:
            raise PaymentConflictError(
                f"Booking {self.booking_number} is already paid",
                code="already_paid",
                field="payment_status",
            )
        self.payment_status = PaymentStatus.PAID
        self.payment_method = method
        self.payment_transaction_id = transaction_id or ""
        self.payment_date = now

    def record_deposit(self, now: datetime, method: str, transaction_id: str = "") -> None:
        if self.deposit_paid:
            raise PaymentConflictError(
                f"Deposit for booking {self.booking_number} is already paid",
                code="deposit_already_paid",
                field="deposit_paid",
            )
        self.deposit_paid = True
        self.deposit_paid_date = now
        self.deposit_payment_method = method
        self.deposit_transaction_id = transaction_id or ""
        if self.payment_status == PaymentStatus.UNPAID:
            self.payment_status = PaymentStatus.PARTIALLY_PAID

    def refund(self) -> None:
        if self.payment_status != PaymentStatus.PAID or self.status != BookingStatus.CANCELLED:
            raise PaymentConflictError(
                f"Only paid and cancelled bookings can be refunded "
                f"(payment {self.payment_status}, status {self.status})",
                code="refund_not_allowed",
                field="payment_status",
            )
        self.payment_status = PaymentStatus.REFUNDED

    # --- Notes --------------------------------------------------------------
    def append_admin_note(self, note: str, now: datetime) -> None:
        stamp = timezone.localtime(now).strftime("%Y-%m-%d %H:%M")
        line = f"[{stamp}] {note.strip()}"
        self.admin_notes = f"{self.admin_notes}\n{line}" if self.admin_notes else line


class BookingGuest(models.Model):
    """Person staying under a booking; exactly one per booking is primary."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="guests")
    is_primary = models.BooleanField(default=False)
    position = models.PositiveSmallIntegerField(default=0)
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    national_id = models.CharField(max_length=20, blank=True, db_index=True)
    nationality = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=500, blank=True)

    class Meta:
        verbose_name = _("Booking guest")
        verbose_name_plural = _("Booking guests")
        ordering = ["-is_primary", "position"]

    def __str__(self) -> str:
        return self.full_name


class ServiceCharge(models.Model):
    """
    Incidental charge on a stay.

    Rows are never edited or deleted: removal sets ``voided_at`` and the
    booking total is recomputed from the rows that are not voided.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="service_charges")
    service_type = models.CharField(max_length=20, choices=ServiceType.choices, default=ServiceType.OTHER)
    description = models.CharField(max_length=255)
    unit_amount = models.DecimalField(max_digits=14, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    charged_at = models.DateTimeField(default=timezone.now)
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name = _("Service charge")
        verbose_name_plural = _("Service charges")
        ordering = ["charged_at"]

    def __str__(self) -> str:
        return f"{self.service_type} x{self.quantity} ({self.booking_id})"

    @property
    def line_total(self) -> Decimal:
        return self.unit_amount * self.quantity

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None


class BookingNumberSequence(models.Model):
    """Per-day counter behind BK{yyyyMMdd}{NNNN} booking numbers."""

    day = models.DateField(unique=True)
    last_value = models.PositiveIntegerField(default=0)

    MAX_VALUE = 9999

    class Meta:
        verbose_name = _("Booking number sequence")
        verbose_name_plural = _("Booking number sequences")

    def __str__(self) -> str:
        return f"{self.day}: {self.last_value}"

    @classmethod
    def next_number(cls, day: date) -> str:
        """
        Draw the next booking number for ``day``.

        Must run inside a transaction; the day's row is locked until commit
        so concurrent creations never draw the same value.
        """
        sequence, _created = cls.objects.select_for_update().get_or_create(day=day)
        if sequence.last_value >= cls.MAX_VALUE:
            raise BookingConflictError(
                f"Booking numbers for {day} are exhausted",
                code="booking_numbers_exhausted",
            )
        sequence.last_value += 1
        sequence.save(update_fields=["last_value"])
        return f"BK{day:%Y%m%d}{sequence.last_value:04d}"
