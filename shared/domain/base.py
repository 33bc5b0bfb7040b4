"""
Base Domain Classes

- Entity: object with identity (database primary key once persisted)
- ValueObject: immutable, compared by value
- Aggregate: consistency boundary that records domain events
- DomainEvent: something that happened, published after commit
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4


@dataclass
class Entity(ABC):
    """
    Base class for all entities

    ``id`` stays ``None`` until a repository persists the entity.
    Two persisted entities of the same class are equal if their IDs are equal;
    unsaved entities are only equal to themselves.
    """
    id: Optional[int] = None

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self):
        return hash((self.__class__.__name__, self.id)) if self.id is not None else id(self)


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable object without identity."""


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Events are collected by the unit of work and published once the
    surrounding transaction has committed.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of the pending events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their payload as extra dataclass fields; ``to_dict`` adds
    those fields to the envelope so the event can be logged or queued.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: Optional[int] = None

    def to_dict(self) -> dict:
        payload = {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }
        for name, value in vars(self).items():
            if name in payload or name.startswith('_'):
                continue
            payload[name] = value if isinstance(value, (int, str, bool, type(None))) else str(value)
        return payload
