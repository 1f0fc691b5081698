"""
Base Domain Classes

Building blocks shared by the booking domain:
- ValueObject: Immutable objects compared by value (Money, DateRange, PriceBreakdown)
- RecordsEvents: Event collection for aggregate roots, ORM-backed or not
- Aggregate: Consistency boundary built in memory (RoomInventory)
- DomainEvent: Something that happened, published after commit
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class RecordsEvents:
    """
    Domain event collection for aggregate roots

    Django models cannot be dataclasses, so the Booking model mixes this in
    directly. The unit of work only relies on add_event / events /
    clear_events.
    """

    def add_event(self, event: 'DomainEvent'):
        self.__dict__.setdefault('_pending_events', []).append(event)

    def clear_events(self):
        self.__dict__['_pending_events'] = []

    @property
    def events(self) -> List['DomainEvent']:
        return list(self.__dict__.get('_pending_events', []))


@dataclass(kw_only=True, eq=False)
class Aggregate(RecordsEvents):
    """
    Base class for aggregate roots assembled from several rows

    Such an aggregate exists only for the duration of one unit of work;
    two instances are never equal, even for the same rows.
    """


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    ``aggregate_id`` is the primary key of the booking (or other root)
    the event is about.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: int | None = None
