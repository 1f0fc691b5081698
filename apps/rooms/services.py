"""Room catalog operations used by the booking engine.

The booking engine talks to rooms only through these functions: read a
room, lock it for the duration of an availability-sensitive transaction,
move its housekeeping status and bump its booking counter.
"""

from __future__ import annotations

import logging

from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.exceptions import RoomNotFound

from .models import Room

logger = logging.getLogger(__name__)


def get_room(room_id: int) -> Room:
    try:
        return Room.objects.get(pk=room_id)
    except (Room.DoesNotExist, ValueError, TypeError) as exc:
        raise RoomNotFound(f"Room {room_id} not found", field="room_id") from exc


def lock_room(room_id: int) -> Room:
    """
    Load the room with SELECT FOR UPDATE.

    Must be called inside a transaction. Every booking creation or date
    change for the room takes this lock first, which serializes the
    overlap check and the insert per room.
    """
    try:
        return Room.objects.select_for_update().get(pk=room_id)
    except (Room.DoesNotExist, ValueError, TypeError) as exc:
        raise RoomNotFound(f"Room {room_id} not found", field="room_id") from exc


def set_room_status(room_id: int, status: str) -> None:
    updated = Room.objects.filter(pk=room_id).update(status=status, updated_at=timezone.now())
    if not updated:
        raise RoomNotFound(f"Room {room_id} not found", field="room_id")
    logger.info(f"Room {room_id} status -> {status}")


def increment_booking_count(room_id: int) -> None:
    Room.objects.filter(pk=room_id).update(
        total_bookings=F("total_bookings") + 1,
        last_booked_at=timezone.now(),
    )


def active_room_count() -> int:
    return Room.objects.filter(is_active=True).count()
