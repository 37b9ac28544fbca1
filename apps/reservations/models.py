"""Reservation model for court bookings."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Reservation(models.Model):
    """A court booking. Status writes go through ReservationService only."""

    class Status(models.TextChoices):
        HOLD = "hold", _("Held")
        PAYMENT_PENDING = "payment_pending", _("Payment pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        EXPIRED = "expired", _("Expired")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    court = models.ForeignKey(
        "courts.Court",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.HOLD,
    )
    expires_at = models.DateTimeField(null=True, blank=True)

    client_name = models.CharField(max_length=120)
    client_email = models.EmailField(blank=True, null=True)
    client_phone = models.CharField(max_length=40, blank=True, null=True)

    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="ARS")

    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Actor id supplied by the caller (user, system, payment-provider)."),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_at__gt=models.F("start_at")),
                name="reservation_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["court", "start_at", "end_at", "status"]),
            models.Index(fields=["status", "expires_at"]),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.id} ({self.status}) {self.start_at:%Y-%m-%d %H:%M}"

    def deadline_passed(self, now) -> bool:
        return self.expires_at is not None and now >= self.expires_at
