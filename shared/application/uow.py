"""
Unit of Work

One database transaction per command. Domain events recorded on the
aggregates touched inside the block are published through the message
bus only after the outermost transaction commits; a rolled back block
publishes nothing.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    transaction.atomic() plus after-commit event publishing

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = booking_repo.get_by_id(booking_id, lock=True)
            booking.confirm(now)
            booking_repo.save(booking)
            uow.collect_events(booking)
        # BookingConfirmed is published after commit

    Nested units join the enclosing transaction (as a savepoint) and their
    events wait for the outermost commit.
    """

    def __init__(self, bus=None):
        self._events: List[DomainEvent] = []
        self._atomic = None
        self._bus = bus

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            elif self._events:
                logger.warning(f"Rolling back, discarding {len(self._events)} events ({exc_type.__name__})")
        finally:
            self._events = []
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, *aggregates):
        """Take the pending events off each aggregate"""
        for aggregate in aggregates:
            pending = aggregate.events
            if not pending:
                continue
            self._events.extend(pending)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(pending)} events from {aggregate.__class__.__name__} "
                f"(ID: {getattr(aggregate, 'pk', None)})"
            )

    def add_event(self, event: DomainEvent):
        """Queue an event that belongs to no single aggregate"""
        self._events.append(event)

    def _schedule_publish(self):
        events = list(self._events)
        if events:
            logger.debug(f"Committing with {len(events)} events")
            transaction.on_commit(lambda: self._publish(events))

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        try:
            bus.publish_events(events)
        except Exception as e:
            # The booking change is committed; delivery failures end here
            logger.error(f"Error publishing events: {e}", exc_info=True)
