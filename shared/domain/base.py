"""
Base Domain Classes

Building blocks shared by every bounded context:
- Entity: a mirrored remote row with a stable identity
- ValueObject: immutable values compared by their attributes
- Aggregate: an entity that collects domain events until they are published
- DomainEvent: something that happened, routed through the message bus

Rows are owned by the hosted database; entities here are local mirrors and
never the authoritative copy.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import uuid4


def new_id() -> str:
    return str(uuid4())


@dataclass
class Entity(ABC):
    """
    Base class for all entities

    Identity is the remote row id (a UUID string).
    Two entities are equal if their IDs are equal.
    """
    id: str = field(default_factory=new_id)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    """
    pass


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Events are held on the aggregate until a unit of work publishes them.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the collected events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses are declared with ``kw_only=True`` so their payload fields may
    come without defaults.
    """
    event_id: str = field(default_factory=new_id)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: str | None = None

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': self.event_id,
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }
