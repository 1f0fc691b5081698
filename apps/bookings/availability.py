"""Room availability queries.

Read-only answers for callers that only want to know, not to book. The
booking handlers do not use these: they lock the room and allocate on
the RoomInventory inside their own transaction.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List

from shared.domain.value_objects import DateRange
from apps.bookings.domain.exceptions import BookingValidationError, RoomNotFound
from apps.bookings.infrastructure.repositories import InventoryRepository
from apps.rooms import services as rooms

logger = logging.getLogger(__name__)

inventory_repo = InventoryRepository()


def _stay(check_in: date, check_out: date) -> DateRange:
    if check_in is None or check_out is None or check_out <= check_in:
        raise BookingValidationError("Check-out date must be after check-in date", field="check_out_date")
    return DateRange(check_in, check_out)


def is_available(
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: int | None = None,
) -> bool:
    """True iff no blocking booking of the room shares a night with the stay."""
    dates = _stay(check_in, check_out)
    rooms.get_room(room_id)
    inventory = inventory_repo.for_window(room_id, check_in, check_out)
    return inventory.can_allocate(dates, exclude_booking_id=exclude_booking_id)


def unavailable_dates(room_id: int, range_start: date, range_end: date) -> List[date]:
    """
    Calendar days in [range_start, range_end] touched by a blocking booking.

    Each booking contributes its check-in through check-out day inclusive.
    """
    if range_start is None or range_end is None or range_end < range_start:
        raise BookingValidationError("End date must not be before start date", field="end_date")
    rooms.get_room(room_id)
    inventory = inventory_repo.for_window(room_id, range_start, range_end)
    return inventory.unavailable_dates(range_start, range_end)


def batch_availability(room_ids: Iterable[int], check_in: date, check_out: date) -> Dict[int, bool]:
    """Independent single-room checks; unknown rooms report False."""
    dates = _stay(check_in, check_out)
    result: Dict[int, bool] = {}
    for room_id in room_ids:
        try:
            rooms.get_room(room_id)
        except RoomNotFound:
            logger.info(f"Availability asked for unknown room {room_id}")
            result[room_id] = False
            continue
        inventory = inventory_repo.for_window(room_id, check_in, check_out)
        result[room_id] = inventory.can_allocate(dates)
    return result
