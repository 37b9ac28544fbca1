"""Payment provider event log."""

from __future__ import annotations

from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentEvent(models.Model):
    """One delivered webhook. provider_event_id is the idempotency key."""

    provider_event_id = models.CharField(max_length=128, unique=True)
    reservation_ref = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text=_("Reservation id exactly as delivered by the provider."),
    )
    payment_status = models.CharField(max_length=32, blank=True)
    payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    processed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "payment_events"
        ordering = ["processed_at"]

    def __str__(self) -> str:
        return f"{self.provider_event_id} ({self.payment_status or 'unknown'})"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValueError("Payment events are append-only")
        super().save(*args, **kwargs)
