"""Availability models: recurring weekly rules and date-specific overrides."""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class DayOfWeek(models.IntegerChoices):
    SUNDAY = 0, _("Sunday")
    MONDAY = 1, _("Monday")
    TUESDAY = 2, _("Tuesday")
    WEDNESDAY = 3, _("Wednesday")
    THURSDAY = 4, _("Thursday")
    FRIDAY = 5, _("Friday")
    SATURDAY = 6, _("Saturday")

    @classmethod
    def of(cls, day) -> "DayOfWeek":
        """Sunday-based day number of a date."""

        return cls(day.isoweekday() % 7)


class AvailabilityRule(models.Model):
    """Weekly template subdividing [start_time, end_time) into fixed slots."""

    court = models.ForeignKey(
        "courts.Court",
        on_delete=models.CASCADE,
        related_name="availability_rules",
    )
    day_of_week = models.PositiveSmallIntegerField(
        choices=DayOfWeek.choices,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    slot_minutes = models.PositiveIntegerField(default=60, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["court", "day_of_week", "start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["court", "day_of_week", "start_time", "end_time", "slot_minutes"],
                name="availability_rule_unique_window",
            ),
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="availability_rule_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["court", "day_of_week", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class AvailabilityOverride(models.Model):
    """Date-specific exception that closes (blocked) or re-opens a time range."""

    court = models.ForeignKey(
        "courts.Court",
        on_delete=models.CASCADE,
        related_name="availability_overrides",
    )
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    blocked = models.BooleanField(default=True)
    reason = models.CharField(max_length=200, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["date", "start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="availability_override_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["court", "date"]),
        ]

    def __str__(self) -> str:
        state = "blocked" if self.blocked else "open"
        return f"{self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M} ({state})"
