"""Guest email notifications for bookings.

Sending is best-effort: every sender returns ``True`` when the mail was
handed to the backend and ``False`` otherwise, after logging the error.
The ``deliver_*`` functions also record the sent flag on the booking.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from apps.bookings.conf import booking_settings
from apps.bookings.domain.exceptions import BookingNotFound
from apps.bookings.domain.statuses import BookingStatus

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one HTML email with a plain-text alternative.

    Returns:
        bool: True if the backend accepted the message
    """
    if not recipient_email:
        logger.warning(f"Email '{subject}' skipped: no recipient")
        return False
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def _recipient(booking: "Booking") -> str:
    primary = booking.primary_guest
    return booking.user_email or (primary.email if primary else "")


def send_booking_confirmation_email(booking: "Booking") -> bool:
    """Booking received: number, room, dates and amounts."""
    hotel = booking_settings.HOTEL_NAME
    subject = f"{hotel}: booking {booking.booking_number} received"
    html_message = f"""
    <html>
    <body>
        <h2>Hello, {booking.user_full_name or booking.user_email}!</h2>
        <p>Thank you for booking with {hotel}. Your reservation details:</p>
        <ul>
            <li><strong>Booking number:</strong> {booking.booking_number}</li>
            <li><strong>Room:</strong> {booking.room_number} {booking.room_name}</li>
            <li><strong>Check-in:</strong> {booking.check_in_date:%d/%m/%Y}</li>
            <li><strong>Check-out:</strong> {booking.check_out_date:%d/%m/%Y}</li>
            <li><strong>Nights:</strong> {booking.number_of_nights}</li>
            <li><strong>Total:</strong> {booking.total_amount} {booking.currency}</li>
            <li><strong>Deposit:</strong> {booking.deposit_amount} {booking.currency}</li>
        </ul>
        <p>Regards,<br>{hotel}</p>
    </body>
    </html>
    """
    return send_email_notification(_recipient(booking), subject, html_message)


def send_check_in_reminder_email(booking: "Booking") -> bool:
    """Reminder sent shortly before the check-in day."""
    hotel = booking_settings.HOTEL_NAME
    subject = f"{hotel}: your stay starts on {booking.check_in_date:%d/%m/%Y}"
    html_message = f"""
    <html>
    <body>
        <h2>Hello, {booking.user_full_name or booking.user_email}!</h2>
        <p>We look forward to welcoming you.</p>
        <ul>
            <li><strong>Booking number:</strong> {booking.booking_number}</li>
            <li><strong>Room:</strong> {booking.room_number} {booking.room_name}</li>
            <li><strong>Check-in:</strong> {booking.check_in_date:%d/%m/%Y}</li>
            <li><strong>Check-out:</strong> {booking.check_out_date:%d/%m/%Y}</li>
        </ul>
        <p>Please bring the ID document of the primary guest.</p>
        <p>Regards,<br>{hotel}</p>
    </body>
    </html>
    """
    return send_email_notification(_recipient(booking), subject, html_message)


# ============================================================================
# DELIVERY WITH BOOKKEEPING
# ============================================================================

def _load(booking_id: int) -> "Booking":
    from apps.bookings.models import Booking

    try:
        return Booking.objects.prefetch_related("guests").get(pk=booking_id)
    except Booking.DoesNotExist as exc:
        raise BookingNotFound(f"Booking {booking_id} not found", field="booking_id") from exc


def deliver_confirmation(booking_id: int) -> bool:
    """Send the confirmation email and set ``confirmation_email_sent`` on success."""
    from apps.bookings.models import Booking

    booking = _load(booking_id)
    sent = send_booking_confirmation_email(booking)
    if sent:
        Booking.objects.filter(pk=booking.pk).update(confirmation_email_sent=True)
    return sent


def deliver_reminder(booking_id: int) -> bool:
    """Send the check-in reminder and set ``reminder_email_sent`` on success."""
    from apps.bookings.models import Booking

    booking = _load(booking_id)
    sent = send_check_in_reminder_email(booking)
    if sent:
        Booking.objects.filter(pk=booking.pk).update(reminder_email_sent=True)
    return sent


def bulk_check_in_reminders(today: date) -> int:
    """
    Remind every confirmed guest arriving within the lead window.

    Each booking is claimed with a conditional UPDATE on
    ``reminder_email_sent`` before sending, so overlapping or repeated
    sweeps send at most one reminder per booking. A failed send releases
    the claim for the next sweep.

    Returns:
        int: number of reminders sent
    """
    from apps.bookings.models import Booking

    until = today + timedelta(days=booking_settings.REMINDER_LEAD_DAYS)
    candidates = list(
        Booking.objects.filter(
            status=BookingStatus.CONFIRMED,
            reminder_email_sent=False,
            check_in_date__gte=today,
            check_in_date__lte=until,
        ).prefetch_related("guests").order_by("check_in_date", "id")
    )

    sent = 0
    for booking in candidates:
        claimed = Booking.objects.filter(pk=booking.pk, reminder_email_sent=False).update(
            reminder_email_sent=True
        )
        if not claimed:
            continue
        if send_check_in_reminder_email(booking):
            sent += 1
        else:
            Booking.objects.filter(pk=booking.pk).update(reminder_email_sent=False)

    logger.info(f"Check-in reminders: {sent} sent of {len(candidates)} candidates ({today} - {until})")
    return sent
