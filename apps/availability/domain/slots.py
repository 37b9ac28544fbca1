"""
Slot generation

Pure functions turning a day's rule windows and overrides into an ordered
list of slots. Nothing here touches the database; the service layer loads
rows and hands them over as plain windows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional, Sequence

from shared.domain.base import ValueObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot(ValueObject):
    """A candidate booking window. start/end are aware, in the court's zone."""

    start: datetime
    end: datetime
    open: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class RuleWindow(ValueObject):
    start_time: time
    end_time: time
    slot_minutes: int


@dataclass(frozen=True)
class OverrideWindow(ValueObject):
    start_time: time
    end_time: time
    blocked: bool
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    sequence: int = 0


class _Draft:
    __slots__ = ("start", "end", "open", "reason", "blocked_by")

    def __init__(self, start: int, end: int, open: bool = True):
        self.start = start
        self.end = end
        self.open = open
        self.reason: Optional[str] = None
        self.blocked_by: Optional[bool] = None

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def _override_order(override: OverrideWindow):
    return (override.created_at is None, override.created_at or datetime.min, override.sequence)


def _rule_slots(rules: Iterable[RuleWindow]) -> list[_Draft]:
    drafts: list[_Draft] = []
    for rule in sorted(rules, key=lambda r: (r.start_time, r.end_time)):
        if rule.slot_minutes <= 0:
            logger.warning(f"Ignoring rule {rule.start_time}-{rule.end_time} with slot size {rule.slot_minutes}")
            continue
        start, end = _seconds(rule.start_time), _seconds(rule.end_time)
        step = rule.slot_minutes * 60
        # trailing partial slot is dropped
        count = max(0, (end - start) // step)
        for index in range(count):
            slot_start = start + index * step
            slot_end = slot_start + step
            if any(d.overlaps(slot_start, slot_end) for d in drafts):
                logger.warning(
                    f"Skipping slot {rule.start_time}+{index * rule.slot_minutes}min: "
                    f"overlaps a slot from another rule"
                )
                continue
            drafts.append(_Draft(slot_start, slot_end))
    return drafts


def _uncovered(start: int, end: int, drafts: Sequence[_Draft]) -> list[tuple[int, int]]:
    """Portions of [start, end) not covered by any draft."""

    gaps = []
    cursor = start
    for draft in sorted(drafts, key=lambda d: d.start):
        if draft.end <= cursor or draft.start >= end:
            continue
        if draft.start > cursor:
            gaps.append((cursor, draft.start))
        cursor = max(cursor, draft.end)
        if cursor >= end:
            break
    if cursor < end:
        gaps.append((cursor, end))
    return gaps


def generate_slots(
    day: date,
    tz: tzinfo,
    rules: Iterable[RuleWindow],
    overrides: Iterable[OverrideWindow] = (),
) -> list[Slot]:
    """
    Build the slots of one date.

    Rule windows produce open slots. Opening overrides add slots for the
    parts of their range no rule covers. Then every override sets the
    openness of each slot it intersects, oldest first, so the most recently
    created override decides a contested slot.
    """
    drafts = _rule_slots(rules)
    ordered_overrides = sorted(overrides, key=_override_order)

    for override in ordered_overrides:
        if override.blocked:
            continue
        start, end = _seconds(override.start_time), _seconds(override.end_time)
        for gap_start, gap_end in _uncovered(start, end, drafts):
            drafts.append(_Draft(gap_start, gap_end, open=False))

    drafts.sort(key=lambda d: d.start)

    for override in ordered_overrides:
        start, end = _seconds(override.start_time), _seconds(override.end_time)
        if start >= end:
            continue
        for draft in drafts:
            if not draft.overlaps(start, end):
                continue
            if draft.blocked_by is not None and draft.blocked_by != override.blocked:
                logger.warning(
                    f"Conflicting overrides on {day.isoformat()} for slot starting at "
                    f"{timedelta(seconds=draft.start)}; the most recent one wins"
                )
            draft.blocked_by = override.blocked
            draft.open = not override.blocked
            draft.reason = override.reason

    midnight = datetime.combine(day, time.min, tzinfo=tz)
    return [
        Slot(
            start=midnight + timedelta(seconds=draft.start),
            end=midnight + timedelta(seconds=draft.end),
            open=draft.open,
            reason=draft.reason,
        )
        for draft in drafts
    ]


def covering_open_slots(slots: Iterable[Slot], start_at: datetime, end_at: datetime) -> Optional[list[Slot]]:
    """
    Open slots whose contiguous union contains [start_at, end_at)

    Returns None when the range is not fully covered. The range does not
    need to be aligned to slot boundaries.
    """
    chain: list[Slot] = []
    cursor = start_at
    for slot in sorted((s for s in slots if s.open), key=lambda s: s.start):
        if slot.end <= cursor:
            continue
        if slot.start > cursor:
            break
        chain.append(slot)
        cursor = slot.end
        if cursor >= end_at:
            return chain
    return None
