"""Racing hold requests against one court."""

from __future__ import annotations

import threading

import pytest
from django.db import connection

from apps.reservations.models import Reservation
from shared.domain.exceptions import SlotConflict

from .helpers import at

WORKERS = 6


@pytest.mark.django_db(transaction=True)
def test_only_one_overlapping_hold_wins(service, court, monday_rule, client_info):
    barrier = threading.Barrier(WORKERS)
    results = []
    results_lock = threading.Lock()

    # Every worker asks for a range overlapping 10:00-11:00
    ranges = [
        (at(10), at(11)),
        (at(10, 30), at(11, 30)),
        (at(9, 30), at(10, 30)),
        (at(10), at(12)),
        (at(10), at(11)),
        (at(9), at(11)),
    ]

    def worker(start, end):
        try:
            barrier.wait(timeout=10)
            try:
                reservation = service.create_hold(court.pk, start, end, client=client_info)
                outcome = ("ok", reservation.pk)
            except SlotConflict:
                outcome = ("conflict", None)
            except Exception as e:  # surfaced through the assertion below
                outcome = ("error", repr(e))
            with results_lock:
                results.append(outcome)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=r) for r in ranges]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(kind for kind, _ in results) == ["conflict"] * (WORKERS - 1) + ["ok"]
    assert Reservation.objects.filter(status=Reservation.Status.HOLD).count() == 1


@pytest.mark.django_db(transaction=True)
def test_disjoint_holds_all_succeed(service, court, monday_rule, client_info):
    barrier = threading.Barrier(4)
    errors = []

    def worker(hour):
        try:
            barrier.wait(timeout=10)
            service.create_hold(court.pk, at(hour), at(hour + 1), client=client_info)
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(hour,)) for hour in (8, 9, 10, 11)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert Reservation.objects.count() == 4
