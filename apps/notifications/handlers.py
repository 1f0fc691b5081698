"""Booking event subscribers that queue guest notifications."""

from __future__ import annotations

import logging

from apps.bookings.domain.events import BookingCreated

logger = logging.getLogger(__name__)


def enqueue_booking_confirmation(event: BookingCreated) -> None:
    """
    Queue the confirmation email for a new booking.

    Runs after the booking is committed. A broker outage is logged and
    never reaches the caller that created the booking.
    """
    from .tasks import send_booking_confirmation

    try:
        send_booking_confirmation.delay(event.booking_id)
    except Exception as e:
        logger.error(
            f"Could not queue confirmation for booking {event.booking_number}: {e}",
            exc_info=True,
        )


def register(bus) -> None:
    bus.register_event_handler(BookingCreated, enqueue_booking_confirmation)
