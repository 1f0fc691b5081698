"""
Room Inventory Aggregate

The consistency boundary that prevents double bookings of a room.
Every booking creation and date change is checked against it.

Strategy:
1. Domain validation: can_allocate() applies the half-open overlap rule
2. Pessimistic locking: the room row is locked with SELECT FOR UPDATE
   before the inventory is loaded, so check-and-insert is serialized
   per room inside one transaction
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange
from apps.bookings.domain.exceptions import RoomUnavailableError


@dataclass(frozen=True)
class Allocation:
    """
    Nights held by one active booking

    Only bookings in a blocking status (PENDING, CONFIRMED, CHECKED_IN)
    become allocations.
    """
    booking_id: int | None
    booking_number: str
    dates: DateRange


@dataclass(kw_only=True, eq=False)
class RoomInventory(Aggregate):
    """
    Inventory Aggregate Root

    Key invariants:
    - No two allocations of the room share a night
    - A booking being updated never conflicts with itself

    Usage:
        room = lock_room(room_id)
        inventory = inventory_repo.for_room(room.pk)
        inventory.allocate(dates)
    """

    room_id: int
    allocations: List[Allocation] = field(default_factory=list)

    def overlapping(self, dates: DateRange, exclude_booking_id: int | None = None) -> List[Allocation]:
        return [
            allocation for allocation in self.allocations
            if exclude_booking_id is None or allocation.booking_id != exclude_booking_id
            if allocation.dates.overlaps_with(dates)
        ]

    def can_allocate(self, dates: DateRange, exclude_booking_id: int | None = None) -> bool:
        return not self.overlapping(dates, exclude_booking_id)

    def allocate(
        self,
        dates: DateRange,
        booking_number: str = '',
        booking_id: int | None = None,
        exclude_booking_id: int | None = None,
    ) -> Allocation:
        """
        Reserve nights for a booking

        Raises:
            RoomUnavailableError: listing the clashing bookings and nights
        """
        clashes = self.overlapping(dates, exclude_booking_id)
        if clashes:
            clashing_nights = sorted({
                night.isoformat()
                for clash in clashes
                for night in clash.dates.nights()
                if dates.contains(night)
            })
            raise RoomUnavailableError(
                f"Room {self.room_id} is not available for {dates}",
                field='check_in_date',
                details={
                    'room_id': self.room_id,
                    'conflicting_bookings': [clash.booking_number for clash in clashes],
                    'conflicting_dates': clashing_nights,
                },
            )

        if exclude_booking_id is not None:
            self.allocations = [a for a in self.allocations if a.booking_id != exclude_booking_id]
        allocation = Allocation(booking_id=booking_id, booking_number=booking_number, dates=dates)
        self.allocations.append(allocation)
        return allocation

    def unavailable_dates(self, range_start: date, range_end: date) -> List[date]:
        """
        Calendar days touched by any allocation, within the range

        Each allocation contributes check-in through check-out inclusive;
        both ends of the range are inclusive too.
        """
        days = set()
        for allocation in self.allocations:
            for day in allocation.dates.calendar_days():
                if range_start <= day <= range_end:
                    days.add(day)
        return sorted(days)

    @classmethod
    def from_bookings(cls, room_id: int, bookings: Iterable) -> 'RoomInventory':
        """Build from objects with id, booking_number, check_in_date and check_out_date"""
        return cls(
            room_id=room_id,
            allocations=[
                Allocation(
                    booking_id=booking.id,
                    booking_number=booking.booking_number,
                    dates=DateRange(booking.check_in_date, booking.check_out_date),
                )
                for booking in bookings
            ],
        )
