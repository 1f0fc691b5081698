"""
Booking Policies

Stay rules checked before a booking is created or its dates change, and
the cancellation fee rule. All functions take "today"/"now" as arguments
so the rules stay deterministic under test.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.exceptions import BookingValidationError


def validate_stay(
    check_in: date,
    check_out: date,
    *,
    today: date,
    min_nights: int,
    max_nights: int,
    max_advance_days: int,
) -> DateRange:
    """
    Validate requested stay dates and return them as a DateRange

    Raises:
        BookingValidationError: with the offending field
    """
    if check_in is None or check_out is None:
        raise BookingValidationError("Check-in and check-out dates are required", field='check_in_date')
    if check_out <= check_in:
        raise BookingValidationError("Check-out date must be after check-in date", field='check_out_date')
    if check_in < today:
        raise BookingValidationError("Check-in date cannot be in the past", field='check_in_date')
    if check_in > today + timedelta(days=max_advance_days):
        raise BookingValidationError(
            f"Bookings can be made at most {max_advance_days} days in advance",
            field='check_in_date',
        )

    dates = DateRange(check_in, check_out)
    nights = len(dates)
    if nights < min_nights or nights > max_nights:
        raise BookingValidationError(
            f"Stay must be between {min_nights} and {max_nights} nights, got {nights}",
            field='check_out_date',
            details={'nights': nights},
        )
    return dates


def validate_occupancy(number_of_guests: int, max_occupancy: int) -> None:
    if number_of_guests is None or number_of_guests < 1:
        raise BookingValidationError("At least one guest is required", field='number_of_guests')
    if number_of_guests > max_occupancy:
        raise BookingValidationError(
            f"Number of guests ({number_of_guests}) exceeds room capacity ({max_occupancy})",
            field='number_of_guests',
            details={'max_occupancy': max_occupancy},
        )


def check_in_moment(check_in: date, tz) -> datetime:
    """Midnight at the start of the check-in day, in the given timezone"""
    return datetime.combine(check_in, time.min, tzinfo=tz)


def cancellation_fee(
    total: Money,
    check_in: date,
    now: datetime,
    *,
    fee_rate: Decimal,
    free_hours: int,
) -> Money:
    """
    Fee charged for cancelling at ``now``

    Free while at least ``free_hours`` remain before check-in midnight,
    otherwise ``fee_rate`` of the total as it stands before cancelling.
    ``now`` must be an aware datetime in the hotel's local timezone.
    """
    remaining = check_in_moment(check_in, now.tzinfo) - now
    if remaining < timedelta(hours=free_hours):
        return total * fee_rate
    return Money.zero(total.currency)
