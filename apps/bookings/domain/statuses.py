"""
Booking vocabularies

Status and payment enums shared by the domain, the ORM models and the API.
They are Django ``TextChoices`` so a value stored in the database compares
equal to the enum member.
"""

from django.db.models import TextChoices  # type: ignore


class BookingStatus(TextChoices):
    """
    Booking lifecycle

    PENDING -> CONFIRMED -> CHECKED_IN -> CHECKED_OUT -> COMPLETED
    PENDING | CONFIRMED -> CANCELLED
    CONFIRMED -> NO_SHOW
    """
    PENDING = 'PENDING', 'Pending'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    CHECKED_IN = 'CHECKED_IN', 'Checked in'
    CHECKED_OUT = 'CHECKED_OUT', 'Checked out'
    CANCELLED = 'CANCELLED', 'Cancelled'
    NO_SHOW = 'NO_SHOW', 'No show'
    COMPLETED = 'COMPLETED', 'Completed'


class PaymentStatus(TextChoices):
    UNPAID = 'UNPAID', 'Unpaid'
    PARTIALLY_PAID = 'PARTIALLY_PAID', 'Partially paid'
    PAID = 'PAID', 'Paid'
    REFUNDED = 'REFUNDED', 'Refunded'
    FAILED = 'FAILED', 'Failed'


class PaymentMethod(TextChoices):
    CASH = 'CASH', 'Cash'
    CREDIT_CARD = 'CREDIT_CARD', 'Credit card'
    DEBIT_CARD = 'DEBIT_CARD', 'Debit card'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank transfer'
    E_WALLET = 'E_WALLET', 'E-wallet'
    PAYPAL = 'PAYPAL', 'PayPal'


class BookingSource(TextChoices):
    WEBSITE = 'WEBSITE', 'Website'
    MOBILE_APP = 'MOBILE_APP', 'Mobile app'
    PHONE = 'PHONE', 'Phone'
    WALK_IN = 'WALK_IN', 'Walk-in'
    OTA = 'OTA', 'Online travel agency'


class ServiceType(TextChoices):
    MINIBAR = 'MINIBAR', 'Minibar'
    LAUNDRY = 'LAUNDRY', 'Laundry'
    ROOM_SERVICE = 'ROOM_SERVICE', 'Room service'
    SPA = 'SPA', 'Spa'
    PARKING = 'PARKING', 'Parking'
    PHONE = 'PHONE', 'Phone'
    OTHER = 'OTHER', 'Other'


# Statuses that hold the room for their nights
BLOCKING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
)

# Statuses that keep the room physically taken (room goes back to
# AVAILABLE only when none of these remain)
ROOM_HOLDING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
)

TERMINAL_STATUSES = (
    BookingStatus.CANCELLED,
    BookingStatus.NO_SHOW,
    BookingStatus.COMPLETED,
)
