"""Tests for the append-only domain event log."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from apps.events.models import DomainEventRecord
from apps.events.recorder import EventRecorder
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


@dataclass
class CourtPainted(DomainEvent):
    court_id: str

    @property
    def event_type(self) -> str:
        return "court.painted"

    def payload(self) -> dict:
        return {"court_id": self.court_id}


@pytest.mark.django_db
def test_read_returns_entries_after_cursor_in_order():
    recorder = EventRecorder()
    first = recorder.record("reservation.hold", {"reservation_id": "a"})
    second = recorder.record("reservation.confirmed", {"reservation_id": "a"})
    third = recorder.record("reservation.hold", {"reservation_id": "b"})

    assert [entry.pk for entry in recorder.read()] == [first.pk, second.pk, third.pk]
    assert [entry.pk for entry in recorder.read(after=first.pk)] == [second.pk, third.pk]
    assert [entry.pk for entry in recorder.read(after=first.pk, limit=1)] == [second.pk]
    assert recorder.read(after=third.pk) == []
    assert recorder.latest_cursor() == third.pk


@pytest.mark.django_db
def test_latest_cursor_is_zero_on_empty_log():
    assert EventRecorder().latest_cursor() == 0


@pytest.mark.django_db
def test_negative_cursor_rejected():
    with pytest.raises(ValueError):
        EventRecorder().read(after=-1)


@pytest.mark.django_db
def test_records_are_write_once():
    entry = EventRecorder().record("reservation.hold", {"reservation_id": "a"})

    entry.type = "reservation.cancelled"
    with pytest.raises(ValueError):
        entry.save()
    with pytest.raises(ValueError):
        entry.delete()

    assert DomainEventRecord.objects.get(pk=entry.pk).type == "reservation.hold"


@pytest.mark.django_db
def test_for_reservation_filters_by_payload_id():
    recorder = EventRecorder()
    recorder.record("reservation.hold", {"reservation_id": "a"})
    recorder.record("reservation.hold", {"reservation_id": "b"})
    recorder.record("reservation.confirmed", {"reservation_id": "a"})

    assert [e.type for e in recorder.for_reservation("a")] == ["reservation.hold", "reservation.confirmed"]


@pytest.mark.django_db
def test_unit_of_work_records_and_publishes_after_commit(django_capture_on_commit_callbacks):
    bus = MessageBus()
    received = []
    bus.register_event_handler("court.painted", received.append)

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork(bus=bus) as uow:
            uow.add_event(CourtPainted("c-1"))
            assert received == []

    assert DomainEventRecord.objects.filter(type="court.painted", payload__court_id="c-1").count() == 1
    assert [event.court_id for event in received] == ["c-1"]
    assert received[0].to_dict()["payload"] == {"court_id": "c-1"}


@pytest.mark.django_db
def test_unit_of_work_discards_events_on_error(django_capture_on_commit_callbacks):
    bus = MessageBus()
    received = []
    bus.register_event_handler(CourtPainted, received.append)

    with django_capture_on_commit_callbacks(execute=True):
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.add_event(CourtPainted("c-1"))
                raise RuntimeError("boom")

    assert not DomainEventRecord.objects.filter(type="court.painted").exists()
    assert received == []


def test_bus_handler_errors_do_not_stop_other_handlers():
    bus = MessageBus()
    received = []

    def broken(event):
        raise RuntimeError("handler down")

    bus.register_event_handler("court.painted", broken)
    bus.register_event_handler("court.painted", received.append)

    bus.publish_events([CourtPainted("c-2")])

    assert len(received) == 1
