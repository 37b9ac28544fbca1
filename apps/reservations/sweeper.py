"""Periodic reclamation of holds whose deadline passed."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore

from .domain.lifecycle import EXPIRABLE_STATUSES
from .models import Reservation
from .services import ReservationService, default_service

logger = logging.getLogger(__name__)


class HoldExpirySweeper:
    """
    Expires overdue holds in batches.

    Keeps no state between runs. Each reservation is expired in its own
    unit of work through the state machine, so a reservation confirmed in
    the meantime is left alone.
    """

    def __init__(self, service: ReservationService | None = None, batch_size: int | None = None):
        self.service = service or default_service()
        self.batch_size = batch_size or settings.RESERVATION_SWEEP_BATCH_SIZE

    def due_reservation_ids(self) -> list:
        now = self.service.clock.now()
        return list(
            Reservation.objects.filter(
                status__in=EXPIRABLE_STATUSES,
                expires_at__lte=now,
            )
            .order_by("expires_at")
            .values_list("id", flat=True)[: self.batch_size]
        )

    def sweep_expired_holds(self) -> int:
        """Expire every overdue hold in this batch. Returns how many changed."""

        expired = 0
        for reservation_id in self.due_reservation_ids():
            try:
                _reservation, changed = self.service.expire_if_due(reservation_id)
            except Exception as e:
                logger.error(f"Failed to expire reservation {reservation_id}: {e}", exc_info=True)
                continue
            if changed:
                expired += 1

        if expired:
            logger.info(f"Hold sweep expired {expired} reservations")
        return expired
