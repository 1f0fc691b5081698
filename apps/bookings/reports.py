"""Statistics and reports derived from the booking set.

All figures are computed in the database where an aggregate exists;
occupancy needs the nights of each stay clipped to the window, so that
part walks the matching bookings. Money comes back as ``Decimal`` with
two places, rates as percentages with two places.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from django.db.models import Avg, Count, Q, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange
from apps.rooms.services import active_room_count

from .domain.exceptions import BookingValidationError
from .domain.statuses import BookingStatus, PaymentStatus
from .models import Booking
from . import queries


ZERO = Decimal("0.00")
CENT = Decimal("0.01")

# Stays that no longer occupy anything
NON_OCCUPYING_STATUSES = (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)
# Stays whose revenue is earned
EARNED_STATUSES = (BookingStatus.CHECKED_OUT, BookingStatus.COMPLETED)


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def _percent(part, whole) -> Decimal:
    if not whole:
        return ZERO
    return (Decimal(part) * 100 / Decimal(whole)).quantize(CENT, rounding=ROUND_HALF_UP)


def _sum(queryset, field_name: str) -> Decimal:
    return _money(queryset.aggregate(value=Sum(field_name))["value"])


def _by_source(queryset) -> Dict[str, int]:
    rows = queryset.values("booking_source").annotate(count=Count("id")).order_by("booking_source")
    result: Dict[str, int] = {}
    for row in rows:
        key = row["booking_source"] or "UNKNOWN"
        result[key] = result.get(key, 0) + row["count"]
    return result


def _by_status(queryset) -> Dict[str, int]:
    rows = queryset.values("status").annotate(count=Count("id"))
    counts = {status.value: 0 for status in BookingStatus}
    for row in rows:
        counts[row["status"]] = row["count"]
    return counts


def booking_statistics(today: date | None = None) -> Dict[str, Any]:
    """Headline numbers over every booking."""
    today = today or timezone.localdate()
    bookings = Booking.objects.all()
    counts = bookings.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=BookingStatus.PENDING)),
        confirmed=Count("id", filter=Q(status=BookingStatus.CONFIRMED)),
        checked_in=Count("id", filter=Q(status=BookingStatus.CHECKED_IN)),
        checked_out=Count("id", filter=Q(status=BookingStatus.CHECKED_OUT)),
        completed=Count("id", filter=Q(status=BookingStatus.COMPLETED)),
        cancelled=Count("id", filter=Q(status=BookingStatus.CANCELLED)),
        no_show=Count("id", filter=Q(status=BookingStatus.NO_SHOW)),
        today_check_ins=Count("id", filter=Q(check_in_date=today)),
        today_check_outs=Count("id", filter=Q(check_out_date=today)),
        average=Avg("total_amount"),
    )

    earned = bookings.filter(status__in=EARNED_STATUSES)
    total_revenue = _sum(earned, "total_amount")
    paid_revenue = _sum(earned.filter(payment_status=PaymentStatus.PAID), "total_amount")

    return {
        "total_bookings": counts["total"],
        "pending_bookings": counts["pending"],
        "confirmed_bookings": counts["confirmed"],
        "checked_in_bookings": counts["checked_in"],
        "checked_out_bookings": counts["checked_out"],
        "completed_bookings": counts["completed"],
        "cancelled_bookings": counts["cancelled"],
        "no_show_bookings": counts["no_show"],
        "total_revenue": total_revenue,
        "paid_revenue": paid_revenue,
        "unpaid_revenue": total_revenue - paid_revenue,
        "today_check_ins": counts["today_check_ins"],
        "today_check_outs": counts["today_check_outs"],
        "average_booking_value": _money(counts["average"]),
        "cancellation_rate": _percent(counts["cancelled"], counts["total"]),
    }


def total_revenue() -> Decimal:
    """Revenue of finished stays that are fully paid."""
    return _sum(
        Booking.objects.filter(status__in=EARNED_STATUSES, payment_status=PaymentStatus.PAID),
        "total_amount",
    )


def revenue_by_range(start: date, end: date) -> Dict[str, Any]:
    """Payments received from ``start`` 00:00 through ``end`` 23:59:59, local time."""
    if start is None or end is None or end < start:
        raise BookingValidationError("End date must not be before start date", field="end_date")
    paid = Booking.objects.filter(
        payment_status=PaymentStatus.PAID,
        payment_date__date__gte=start,
        payment_date__date__lte=end,
    )
    return {
        "start_date": start,
        "end_date": end,
        "total_revenue": _sum(paid, "total_amount"),
        "room_revenue": _sum(paid, "subtotal"),
        "service_charges_revenue": _sum(paid, "additional_charges_total"),
        "booking_count": paid.count(),
    }


def occupancy_rate(start: date, end: date) -> Decimal:
    """
    Occupied room-nights / (active rooms x nights in [start, end)) x 100.

    Each stay counts only the nights that fall inside the window.
    """
    if start is None or end is None or end <= start:
        raise BookingValidationError("End date must be after start date", field="end_date")
    window = DateRange(start, end)
    capacity = active_room_count() * len(window)
    if not capacity:
        return ZERO

    stays = Booking.objects.exclude(status__in=NON_OCCUPYING_STATUSES).filter(
        check_in_date__lt=end,
        check_out_date__gt=start,
    ).values_list("check_in_date", "check_out_date")
    occupied = sum(DateRange(check_in, check_out).overlap_nights(window) for check_in, check_out in stays)
    return _percent(occupied, capacity)


def bookings_by_source() -> Dict[str, int]:
    return _by_source(Booking.objects.all())


def daily_operations_report(day: date) -> Dict[str, Any]:
    """Front-desk view of one day: arrivals, departures, payments, rooms in use."""
    check_ins = list(queries.check_ins_on(day))
    check_outs = list(queries.check_outs_on(day))
    paid_today = Booking.objects.filter(payment_status=PaymentStatus.PAID, payment_date__date=day)

    total_rooms = active_room_count()
    occupied_rooms = Booking.objects.filter(
        status=BookingStatus.CHECKED_IN,
        check_in_date__lte=day,
        check_out_date__gte=day,
    ).values("room_id").distinct().count()

    return {
        "date": day,
        "expected_check_ins": len(check_ins),
        "check_ins": check_ins,
        "expected_check_outs": len(check_outs),
        "check_outs": check_outs,
        "daily_revenue": _sum(paid_today, "total_amount"),
        "payments_count": paid_today.count(),
        "occupancy_rate": _percent(occupied_rooms, total_rooms),
        "occupied_rooms": occupied_rooms,
        "total_rooms": total_rooms,
        "rooms_needing_cleaning": queries.needing_cleaning().count(),
    }


def monthly_report(year: int, month: int) -> Dict[str, Any]:
    """Bookings whose stay starts in the month, plus the month's occupancy."""
    if not 1 <= month <= 12:
        raise BookingValidationError("Month must be between 1 and 12", field="month")
    first = date(year, month, 1)
    last = first + timedelta(days=calendar.monthrange(year, month)[1] - 1)
    bookings = Booking.objects.filter(check_in_date__gte=first, check_in_date__lte=last)

    total = bookings.count()
    cancelled = bookings.filter(status=BookingStatus.CANCELLED).count()
    top_rooms = {
        row["room_number"]: row["count"]
        for row in bookings.values("room_number").annotate(count=Count("id")).order_by("-count", "room_number")
    }

    return {
        "year": year,
        "month": month,
        "total_bookings": total,
        "bookings_by_status": _by_status(bookings),
        "total_revenue": _sum(bookings.filter(payment_status=PaymentStatus.PAID), "total_amount"),
        "average_booking_value": _money(bookings.aggregate(value=Avg("total_amount"))["value"]),
        "occupancy_rate": occupancy_rate(first, last + timedelta(days=1)),
        "cancellation_rate": _percent(cancelled, total),
        "bookings_by_source": _by_source(bookings),
        "top_rooms": top_rooms,
    }
