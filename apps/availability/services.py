"""Availability services: slot computation and rule/override maintenance."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import transaction  # type: ignore

from apps.courts.models import Court
from apps.courts.registry import CourtRegistry, court_registry
from shared.domain.exceptions import InvalidRange, SlotUnavailable, UnknownOverride

from .domain.slots import OverrideWindow, RuleWindow, Slot, covering_open_slots, generate_slots
from .models import AvailabilityOverride, AvailabilityRule, DayOfWeek

logger = logging.getLogger(__name__)


class SlotSchedule:
    """
    Lazy, restartable sequence of slots for one court and date.

    Rules and overrides are loaded on first iteration; later iterations
    replay the same snapshot.
    """

    def __init__(self, court_id, day: date, loader: Callable[[], list[Slot]]):
        self.court_id = court_id
        self.day = day
        self._loader = loader
        self._slots: Optional[list[Slot]] = None

    def __iter__(self) -> Iterator[Slot]:
        if self._slots is None:
            self._slots = self._loader()
        return iter(self._slots)

    def __repr__(self) -> str:
        state = "pending" if self._slots is None else f"{len(self._slots)} slots"
        return f"<SlotSchedule court={self.court_id} day={self.day} {state}>"

    def open_slots(self) -> list[Slot]:
        return [slot for slot in self if slot.open]


def _check_day_span(date_from: date, date_to: date, max_days: int) -> None:
    if date_to < date_from:
        raise InvalidRange("date_to must not be before date_from")
    days = (date_to - date_from).days + 1
    if days > max_days:
        raise InvalidRange(f"Range too large ({days} days). Maximum allowed: {max_days}")


def _check_window(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise InvalidRange("end_time must be after start_time")


def _overlapping_rules(court, days, start_time: time, end_time: time):
    return AvailabilityRule.objects.filter(
        court=court,
        day_of_week__in=days,
        is_active=True,
        start_time__lt=end_time,
        end_time__gt=start_time,
    )


class AvailabilityCalculator:
    """Derives bookable slots from weekly rules plus date overrides."""

    def __init__(self, registry: CourtRegistry | None = None):
        self.registry = registry or court_registry

    def _court(self, court) -> Court:
        if isinstance(court, Court):
            return court
        return self.registry.get(court)

    def _load(self, court: Court, day: date) -> list[Slot]:
        if not court.is_active:
            return []

        rules = [
            RuleWindow(rule.start_time, rule.end_time, rule.slot_minutes)
            for rule in AvailabilityRule.objects.filter(
                court=court,
                day_of_week=DayOfWeek.of(day),
                is_active=True,
            )
        ]
        overrides = [
            OverrideWindow(
                start_time=override.start_time,
                end_time=override.end_time,
                blocked=override.blocked,
                reason=override.reason,
                created_at=override.created_at,
                sequence=override.pk,
            )
            for override in AvailabilityOverride.objects.filter(court=court, date=day).order_by("created_at", "id")
        ]
        return generate_slots(day, ZoneInfo(court.time_zone), rules, overrides)

    def compute_slots(self, court, day: date) -> SlotSchedule:
        court = self._court(court)
        return SlotSchedule(court.pk, day, lambda: self._load(court, day))

    def compute_range(self, court, date_from: date, date_to: date) -> dict[date, list[Slot]]:
        """Slots per date for the inclusive range, oldest date first."""

        _check_day_span(date_from, date_to, settings.AVAILABILITY_MAX_RANGE_DAYS)
        court = self._court(court)
        result = {}
        day = date_from
        while day <= date_to:
            result[day] = list(self.compute_slots(court, day))
            day += timedelta(days=1)
        return result

    def open_slots_covering(self, court, start_at: datetime, end_at: datetime) -> list[Slot]:
        """Open slots containing [start_at, end_at), or SlotUnavailable."""

        court = self._court(court)
        if not court.is_active:
            raise SlotUnavailable(f"Court {court.pk} is not active")

        tz = ZoneInfo(court.time_zone)
        first_day = start_at.astimezone(tz).date()
        last_day = (end_at - timedelta(microseconds=1)).astimezone(tz).date()

        slots: list[Slot] = []
        day = first_day
        while day <= last_day:
            slots.extend(self.compute_slots(court, day))
            day += timedelta(days=1)

        chain = covering_open_slots(slots, start_at, end_at)
        if chain is None:
            raise SlotUnavailable(
                f"{start_at.isoformat()} - {end_at.isoformat()} is not within open slots of court {court.pk}"
            )
        return chain


# ============================================================================
# RULES AND OVERRIDES
# ============================================================================

def create_rule(
    court_id,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_minutes: int = 60,
    *,
    is_active: bool = True,
    registry: CourtRegistry | None = None,
) -> AvailabilityRule:
    """Create a weekly rule. Windows may not overlap another active rule of that day."""

    court = (registry or court_registry).get(court_id)
    _check_window(start_time, end_time)
    if day_of_week not in DayOfWeek.values:
        raise InvalidRange(f"day_of_week must be between 0 and 6, got {day_of_week}")
    if slot_minutes <= 0:
        raise InvalidRange("slot_minutes must be positive")

    with transaction.atomic():
        if is_active and _overlapping_rules(court, [day_of_week], start_time, end_time).exists():
            raise InvalidRange(
                f"Rule {start_time:%H:%M}-{end_time:%H:%M} overlaps an existing rule "
                f"for {DayOfWeek(day_of_week).label}"
            )
        rule = AvailabilityRule.objects.create(
            court=court,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_minutes=slot_minutes,
            is_active=is_active,
        )

    logger.info(f"Created availability rule {rule.pk} for court {court.pk}: {rule}")
    return rule


def bulk_create_rules(
    court_id,
    days_of_week: Iterable[int],
    start_time: time,
    end_time: time,
    slot_minutes: int = 60,
    *,
    is_active: bool = True,
    registry: CourtRegistry | None = None,
) -> dict:
    """
    Create the same window on several days.

    Days that already have a rule starting at start_time, or an active rule
    overlapping the window, are skipped.

    Returns:
        dict: {"inserted": int, "skipped": int, "created": [AvailabilityRule]}
    """
    court = (registry or court_registry).get(court_id)
    _check_window(start_time, end_time)
    days = sorted(set(days_of_week))
    invalid = [day for day in days if day not in DayOfWeek.values]
    if invalid:
        raise InvalidRange(f"Invalid days of week: {invalid}")
    if slot_minutes <= 0:
        raise InvalidRange("slot_minutes must be positive")

    with transaction.atomic():
        existing = set(
            AvailabilityRule.objects.filter(
                court=court,
                day_of_week__in=days,
                start_time=start_time,
            ).values_list("day_of_week", flat=True)
        )
        if is_active:
            existing.update(
                _overlapping_rules(court, days, start_time, end_time).values_list("day_of_week", flat=True)
            )
        created = AvailabilityRule.objects.bulk_create(
            [
                AvailabilityRule(
                    court=court,
                    day_of_week=day,
                    start_time=start_time,
                    end_time=end_time,
                    slot_minutes=slot_minutes,
                    is_active=is_active,
                )
                for day in days
                if day not in existing
            ]
        )

    logger.info(f"Bulk created {len(created)} rules for court {court.pk}, skipped {len(existing)}")
    return {"inserted": len(created), "skipped": len(existing), "created": created}


def list_rules(court_id, *, registry: CourtRegistry | None = None) -> list[AvailabilityRule]:
    court = (registry or court_registry).get(court_id)
    return list(AvailabilityRule.objects.filter(court=court).order_by("day_of_week", "start_time"))


def create_override(
    court_id,
    day: date,
    start_time: time,
    end_time: time,
    *,
    blocked: bool = True,
    reason: str | None = None,
    registry: CourtRegistry | None = None,
) -> AvailabilityOverride:
    court = (registry or court_registry).get(court_id)
    _check_window(start_time, end_time)
    override = AvailabilityOverride.objects.create(
        court=court,
        date=day,
        start_time=start_time,
        end_time=end_time,
        blocked=blocked,
        reason=(reason or "").strip() or None,
    )
    logger.info(f"Created availability override {override.pk} for court {court.pk}: {override}")
    return override


def list_overrides(
    court_id,
    date_from: date,
    date_to: date,
    *,
    registry: CourtRegistry | None = None,
) -> list[AvailabilityOverride]:
    _check_day_span(date_from, date_to, settings.OVERRIDE_MAX_RANGE_DAYS)
    court = (registry or court_registry).get(court_id)
    return list(
        AvailabilityOverride.objects.filter(
            court=court,
            date__range=(date_from, date_to),
        ).order_by("date", "start_time")
    )


def delete_override(override_id) -> None:
    """Remove an override. Raises UnknownOverride when missing."""

    try:
        override = AvailabilityOverride.objects.get(pk=override_id)
    except (AvailabilityOverride.DoesNotExist, ValidationError, ValueError):
        raise UnknownOverride(f"Override {override_id} not found")
    override.delete()
    logger.info(f"Deleted availability override {override_id} for court {override.court_id}")
