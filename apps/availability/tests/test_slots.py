"""Tests for pure slot generation."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from apps.availability.domain.slots import (
    OverrideWindow,
    RuleWindow,
    Slot,
    covering_open_slots,
    generate_slots,
)

CORDOBA = ZoneInfo("America/Argentina/Cordoba")
MONDAY = date(2026, 3, 2)


def _hours(slots):
    return [(s.start.strftime("%H:%M"), s.end.strftime("%H:%M"), s.open) for s in slots]


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute, tzinfo=CORDOBA)


def test_rule_is_split_into_fixed_slots():
    slots = generate_slots(MONDAY, CORDOBA, [RuleWindow(time(8), time(12), 60)])

    assert _hours(slots) == [
        ("08:00", "09:00", True),
        ("09:00", "10:00", True),
        ("10:00", "11:00", True),
        ("11:00", "12:00", True),
    ]
    assert all(slot.reason is None for slot in slots)
    assert slots[0].start == _at(8)


def test_trailing_partial_slot_is_dropped():
    slots = generate_slots(MONDAY, CORDOBA, [RuleWindow(time(8), time(10, 30), 60)])

    assert _hours(slots) == [("08:00", "09:00", True), ("09:00", "10:00", True)]


def test_window_shorter_than_slot_yields_nothing():
    assert generate_slots(MONDAY, CORDOBA, [RuleWindow(time(8), time(8, 30), 60)]) == []


def test_blocking_override_closes_intersecting_slot():
    slots = generate_slots(
        MONDAY,
        CORDOBA,
        [RuleWindow(time(8), time(12), 60)],
        [OverrideWindow(time(9), time(10), blocked=True, reason="Mantenimiento")],
    )

    assert _hours(slots) == [
        ("08:00", "09:00", True),
        ("09:00", "10:00", False),
        ("10:00", "11:00", True),
        ("11:00", "12:00", True),
    ]
    assert slots[1].reason == "Mantenimiento"


def test_partial_override_closes_whole_slot():
    slots = generate_slots(
        MONDAY,
        CORDOBA,
        [RuleWindow(time(8), time(10), 60)],
        [OverrideWindow(time(8, 30), time(8, 45), blocked=True)],
    )

    assert _hours(slots) == [("08:00", "09:00", False), ("09:00", "10:00", True)]


def test_opening_override_adds_slot_outside_rules():
    slots = generate_slots(
        MONDAY,
        CORDOBA,
        [RuleWindow(time(8), time(10), 60)],
        [OverrideWindow(time(9), time(11), blocked=False, reason="Torneo")],
    )

    assert _hours(slots) == [
        ("08:00", "09:00", True),
        ("09:00", "10:00", True),
        ("10:00", "11:00", True),
    ]
    assert slots[2].reason == "Torneo"


def test_opening_override_on_day_without_rules():
    slots = generate_slots(MONDAY, CORDOBA, [], [OverrideWindow(time(18), time(20), blocked=False)])

    assert _hours(slots) == [("18:00", "20:00", True)]


def test_most_recent_override_wins(caplog):
    older = OverrideWindow(
        time(9), time(10), blocked=True, reason="lluvia",
        created_at=datetime(2026, 2, 1, tzinfo=timezone.utc), sequence=1,
    )
    newer = OverrideWindow(
        time(9), time(10), blocked=False, reason="reabierta",
        created_at=datetime(2026, 2, 2, tzinfo=timezone.utc), sequence=2,
    )
    rules = [RuleWindow(time(8), time(11), 60)]

    # Input order does not matter, creation order does
    for overrides in ([older, newer], [newer, older]):
        slots = generate_slots(MONDAY, CORDOBA, rules, overrides)
        assert slots[1].open is True
        assert slots[1].reason == "reabierta"

    assert "Conflicting overrides" in caplog.text


def test_same_timestamp_falls_back_to_sequence():
    stamp = datetime(2026, 2, 1, tzinfo=timezone.utc)
    first = OverrideWindow(time(9), time(10), blocked=False, created_at=stamp, sequence=1)
    second = OverrideWindow(time(9), time(10), blocked=True, created_at=stamp, sequence=2)

    slots = generate_slots(MONDAY, CORDOBA, [RuleWindow(time(9), time(10), 60)], [second, first])

    assert slots[0].open is False


def test_overlapping_rules_never_produce_overlapping_slots():
    slots = generate_slots(
        MONDAY,
        CORDOBA,
        [RuleWindow(time(8), time(12), 60), RuleWindow(time(10, 30), time(14), 30)],
        [OverrideWindow(time(7), time(15), blocked=False)],
    )

    for earlier, later in zip(slots, slots[1:]):
        assert earlier.start < later.start
        assert earlier.end <= later.start


@pytest.mark.parametrize(
    "start,end,expected",
    [
        ((8, 0), (9, 0), 1),
        ((8, 30), (9, 30), 2),
        ((8, 0), (10, 0), 2),
        ((10, 0), (11, 0), None),
        ((9, 30), (10, 30), None),
        ((11, 0), (13, 0), None),
    ],
)
def test_covering_open_slots(start, end, expected):
    slots = [
        Slot(_at(8), _at(9), True),
        Slot(_at(9), _at(10), True),
        Slot(_at(10), _at(11), False),
        Slot(_at(11), _at(12), True),
    ]

    chain = covering_open_slots(slots, _at(*start), _at(*end))

    if expected is None:
        assert chain is None
    else:
        assert len(chain) == expected
