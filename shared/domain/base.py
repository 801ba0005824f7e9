"""
Base Domain Classes

This module provides the foundational building blocks shared by the
allocation domains:
- ValueObject: Immutable objects compared by value
- EventRecorder: Mixin that lets an aggregate root (a Django model here)
  collect domain events until the unit of work publishes them
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, List
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class EventRecorder:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries in DDD.
    They collect domain events that will be published after successful transaction.
    """

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self.__dict__.setdefault('_events', []).append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self.__dict__.get('_events', []).clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return list(self.__dict__.get('_events', []))


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    ``name`` is the public event name consumed by the notification service
    (e.g. ``reservation.overdue``).
    """
    name: ClassVar[str] = 'domain.event'

    event_id: UUID = field(default_factory=uuid4, init=False)
    occurred_at: datetime = field(default_factory=timezone.now, init=False)
    aggregate_id: int | None = field(default=None, kw_only=True)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.name,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }
