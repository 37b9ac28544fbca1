"""Court model for the booking core."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

MUTABLE_FIELDS = frozenset({"is_active", "updated_at"})


def default_time_zone() -> str:
    return settings.COURTS_DEFAULT_TIME_ZONE


def default_currency() -> str:
    return settings.COURTS_DEFAULT_CURRENCY


class Court(models.Model):
    """A bookable physical court."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    club_id = models.UUIDField(db_index=True, help_text=_("Owning club (external registry)."))
    name = models.CharField(max_length=120)
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default=default_currency)
    time_zone = models.CharField(
        max_length=64,
        default=default_time_zone,
        help_text=_("IANA zone that availability rules are written in."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_per_hour__gte=0),
                name="court_price_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if update_fields is None or not set(update_fields) <= MUTABLE_FIELDS:
                raise ValueError("Courts are immutable once created, except for activation")
        super().save(*args, **kwargs)

    def activate(self) -> None:
        self.is_active = True
        self.save(update_fields=["is_active", "updated_at"])

    def deactivate(self) -> None:
        self.is_active = False
        self.save(update_fields=["is_active", "updated_at"])
