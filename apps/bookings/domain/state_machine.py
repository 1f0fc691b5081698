"""
Booking State Machine

The legal lifecycle edges are data. Every status change in the application
layer goes through ensure_transition(), so a booking can only ever walk a
path of this table and terminal statuses have no way out.
"""

from typing import Dict, FrozenSet, Iterable

from apps.bookings.domain.exceptions import InvalidStatusTransition
from apps.bookings.domain.statuses import BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

# Non-transition operations and the statuses they accept
UPDATABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
CHARGEABLE_STATUSES = frozenset({BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT})
CLEANABLE_STATUSES = frozenset({BookingStatus.CHECKED_OUT})


def can_transition(current: str, target: str) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def sources_for(target: str) -> list[str]:
    """Statuses from which ``target`` may be entered, in lifecycle order"""
    target = BookingStatus(target)
    return [status.value for status in BookingStatus if target in ALLOWED_TRANSITIONS[status]]


def ensure_transition(current: str, target: str) -> None:
    """
    Reject an illegal lifecycle edge

    Raises:
        InvalidStatusTransition: naming the current status and the
            statuses the target may be entered from
    """
    if can_transition(current, target):
        return
    allowed = sources_for(target)
    raise InvalidStatusTransition(
        f"Cannot move booking from {current} to {target}; "
        f"allowed only from {', '.join(allowed) or 'nowhere'}",
        field='status',
        details={'current_status': str(current), 'target_status': str(target), 'allowed_from': allowed},
    )


def ensure_status_in(current: str, accepted: Iterable[str], operation: str) -> None:
    """Reject an operation that is only valid in some statuses"""
    accepted = [BookingStatus(status).value for status in accepted]
    if BookingStatus(current).value in accepted:
        return
    raise InvalidStatusTransition(
        f"Cannot {operation} a booking in status {current}; "
        f"allowed only in {', '.join(sorted(accepted))}",
        field='status',
        details={'current_status': str(current), 'allowed_statuses': sorted(accepted)},
    )
