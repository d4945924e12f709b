"""
Unit of Work Pattern

Remote calls are not transactional, so the unit of work only guarantees one
thing: domain events collected while a use case runs are published after
every remote call in the block succeeded, and are discarded otherwise.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Finish the unit and publish what it collected"""

    @abstractmethod
    def rollback(self):
        """Abandon the unit and drop what it collected"""

    @abstractmethod
    def collect_events(self, aggregate):
        """Take pending events off an aggregate root"""


class RemoteUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work around calls to the hosted database

    Usage:
        with RemoteUnitOfWork() as uow:
            booking = booking_repo.get(booking_id)
            booking.request_cancellation(...)
            booking_repo.update(booking.id, {...})
            uow.collect_events(booking)
        # events are published here, only if nothing raised
    """

    def __init__(self, bus=None):
        self._events: List[DomainEvent] = []
        self._bus = bus

    def commit(self):
        events = self._events.copy()
        self._events.clear()
        if events:
            self._publish_events(events)

    def rollback(self):
        if self._events:
            logger.warning(f"Rolling back unit of work, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        new_events = aggregate.events
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _publish_events(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events")
        bus.publish_events(events)
