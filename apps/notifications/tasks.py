"""Celery tasks for guest notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.exceptions import BookingNotFound

from . import services

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="notifications.send_booking_confirmation", max_retries=3, default_retry_delay=60)
def send_booking_confirmation(self, booking_id: int) -> bool:
    """Send the confirmation email, retrying while the mail backend fails."""
    try:
        sent = services.deliver_confirmation(booking_id)
    except BookingNotFound:
        logger.warning(f"Confirmation skipped: booking {booking_id} no longer exists")
        return False
    if not sent:
        raise self.retry()
    return True


@shared_task(name="notifications.send_check_in_reminder")
def send_check_in_reminder(booking_id: int) -> bool:
    try:
        return services.deliver_reminder(booking_id)
    except BookingNotFound:
        logger.warning(f"Reminder skipped: booking {booking_id} no longer exists")
        return False


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="notifications.send_bulk_check_in_reminders")
def send_bulk_check_in_reminders() -> dict[str, int]:
    """
    Daily sweep of check-in reminders.

    Safe to run twice: each booking is reminded at most once.

    Returns:
        dict: {"sent": number of reminders sent}
    """
    return {"sent": services.bulk_check_in_reminders(timezone.localdate())}
