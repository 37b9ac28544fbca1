"""
Building blocks shared by the booking apps: value objects and the
domain events recorded on every state change.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, identity-less; equal when all attributes are equal."""


@dataclass
class DomainEvent:
    """
    Something that happened, recorded in the event log on commit.

    Subclasses define `event_type` (the dotted name stored in the event log)
    and `payload()` (the JSON-serializable body of the log entry).
    """
    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime = field(default_factory=timezone.now, kw_only=True)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict:
        return {}

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'payload': self.payload(),
        }
