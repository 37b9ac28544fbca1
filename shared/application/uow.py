"""
Unit of Work Pattern

Manages database transactions and ensures that domain events are written
to the event log in the same transaction as the state change, and are
published to in-process subscribers only after a successful commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging
import sys

from django.db import transaction

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
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def add_event(self, event: DomainEvent):
        """Collect an event produced inside this unit"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            reservation = Reservation.objects.select_for_update().get(pk=pk)
            reservation.status = Reservation.Status.CONFIRMED
            reservation.save()
            uow.add_event(ReservationTransitioned(...))
            # Events are appended to the event log here, inside the transaction
        # Subscribers on the message bus are called after commit
    """

    def __init__(self, recorder=None, bus=None):
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._recorder = recorder
        self._bus = bus

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        if exc_type is not None:
            self.rollback()
            return self._transaction.__exit__(exc_type, exc_val, exc_tb)

        try:
            self.commit()
        except BaseException:
            self.rollback()
            self._transaction.__exit__(*sys.exc_info())
            raise
        return self._transaction.__exit__(None, None, None)

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    @property
    def events(self) -> List[DomainEvent]:
        return self._events.copy()

    def commit(self):
        """
        Record collected events and schedule their publication

        Records are written while the transaction is still open so the log
        and the state change commit or roll back together. Publication uses
        transaction.on_commit() so subscribers never see rolled back events.
        """
        events = self._events.copy()
        self._events.clear()
        if not events:
            return

        logger.debug(f"Recording {len(events)} events before commit")
        recorder = self._recorder or _default_recorder()
        for event in events:
            recorder.record(event.event_type, event.payload(), created_at=event.occurred_at)

        transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Discard events collected so far"""
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def _publish_events(self, events: List[DomainEvent]):
        """Publish collected events to the message bus (after commit)"""
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus
            bus = message_bus

        logger.debug(f"Publishing {len(events)} domain events after commit")
        bus.publish_events(events)


def _default_recorder():
    # Local import: the event log lives in a Django app
    from apps.events.recorder import event_recorder
    return event_recorder
