"""Tests for the hold expiry sweeper and its Celery task."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.reservations.models import Reservation
from apps.reservations.services import ReservationService
from apps.reservations.sweeper import HoldExpirySweeper
from apps.reservations.tasks import sweep_expired_holds

from .helpers import at, events_for


@pytest.mark.django_db
def test_second_sweep_finds_nothing(service, clock, court, monday_rule, client_info):
    first = service.create_hold(court.pk, at(8), at(9), client=client_info)
    second = service.create_hold(court.pk, at(9), at(10), client=client_info)
    service.mark_payment_pending(second.pk)
    kept = service.create_hold(court.pk, at(10), at(11), client=client_info, ttl=timedelta(hours=1))
    confirmed = service.create_hold(court.pk, at(11), at(12), client=client_info)
    service.confirm(confirmed.pk)

    clock.advance(minutes=20)
    sweeper = HoldExpirySweeper(service=service)

    assert sweeper.sweep_expired_holds() == 2
    assert sweeper.sweep_expired_holds() == 0

    statuses = dict(Reservation.objects.values_list("id", "status"))
    assert statuses[first.pk] == Reservation.Status.EXPIRED
    assert statuses[second.pk] == Reservation.Status.EXPIRED
    assert statuses[kept.pk] == Reservation.Status.HOLD
    assert statuses[confirmed.pk] == Reservation.Status.CONFIRMED
    assert [e.type for e in events_for(first)] == ["reservation.hold", "reservation.expired"]


@pytest.mark.django_db
def test_sweep_respects_batch_size(service, clock, court, monday_rule, client_info):
    for hour in (8, 9, 10):
        service.create_hold(court.pk, at(hour), at(hour + 1), client=client_info)
    clock.advance(minutes=11)

    sweeper = HoldExpirySweeper(service=service, batch_size=2)

    assert sweeper.sweep_expired_holds() == 2
    assert sweeper.sweep_expired_holds() == 1
    assert sweeper.sweep_expired_holds() == 0


class FlakyService(ReservationService):
    def __init__(self, broken_id, **kwargs):
        super().__init__(**kwargs)
        self.broken_id = broken_id

    def expire_if_due(self, reservation_id):
        if reservation_id == self.broken_id:
            raise RuntimeError("database hiccup")
        return super().expire_if_due(reservation_id)


@pytest.mark.django_db
def test_failure_on_one_reservation_does_not_stop_sweep(service, clock, bus, court, monday_rule, client_info, caplog):
    broken = service.create_hold(court.pk, at(8), at(9), client=client_info)
    healthy = service.create_hold(court.pk, at(9), at(10), client=client_info)
    clock.advance(minutes=11)

    flaky = FlakyService(broken.pk, clock=clock, locks=service.locks, bus=bus)

    assert HoldExpirySweeper(service=flaky).sweep_expired_holds() == 1
    assert "database hiccup" in caplog.text

    broken.refresh_from_db()
    healthy.refresh_from_db()
    assert broken.status == Reservation.Status.HOLD
    assert healthy.status == Reservation.Status.EXPIRED


@pytest.mark.django_db
def test_celery_task_expires_overdue_holds(court):
    now = timezone.now()
    overdue = Reservation.objects.create(
        court=court,
        start_at=now + timedelta(days=1),
        end_at=now + timedelta(days=1, hours=1),
        status=Reservation.Status.HOLD,
        expires_at=now - timedelta(minutes=1),
        client_name="Tomas",
        price=Decimal("100.00"),
    )

    result = sweep_expired_holds.delay()

    assert result.get() == {"expired": 1}
    overdue.refresh_from_db()
    assert overdue.status == Reservation.Status.EXPIRED
    assert sweep_expired_holds.delay().get() == {"expired": 0}
