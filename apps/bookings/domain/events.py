"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List

from shared.domain.base import DomainEvent


# ===== Booking Events =====

@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created (-> PENDING)

    Triggers:
    - Send confirmation email to guest
    """
    booking_id: int
    booking_number: str
    room_id: int
    user_id: int
    check_in_date: date
    check_out_date: date
    total_amount: Decimal
    group_booking_id: str = ''


@dataclass(kw_only=True)
class GroupBookingCreated(DomainEvent):
    """Event: All bookings of a group were created in one transaction"""
    group_booking_id: str
    booking_ids: List[int] = field(default_factory=list)
    room_ids: List[int] = field(default_factory=list)


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """Event: Booking confirmed by the hotel (PENDING -> CONFIRMED)"""
    booking_id: int
    booking_number: str


@dataclass(kw_only=True)
class BookingCheckedIn(DomainEvent):
    """
    Event: Guest has checked in (CONFIRMED -> CHECKED_IN)

    The room is OCCUPIED at this point.
    """
    booking_id: int
    booking_number: str
    room_id: int


@dataclass(kw_only=True)
class BookingCheckedOut(DomainEvent):
    """
    Event: Guest has checked out (CHECKED_IN -> CHECKED_OUT)

    Triggers:
    - Housekeeping picks the room from the needs-cleaning list
    """
    booking_id: int
    booking_number: str
    room_id: int


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: Stay closed (CHECKED_OUT -> COMPLETED), eligible for review"""
    booking_id: int
    booking_number: str
    user_id: int


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled

    Triggers:
    - Refund handling (if applicable)
    - Update analytics
    """
    booking_id: int
    booking_number: str
    room_id: int
    reason: str
    cancellation_fee: Decimal
    old_status: str  # Status before cancellation
    cancelled_by: int | None = None


@dataclass(kw_only=True)
class BookingMarkedNoShow(DomainEvent):
    """Event: Guest never arrived (CONFIRMED -> NO_SHOW)"""
    booking_id: int
    booking_number: str
    room_id: int
