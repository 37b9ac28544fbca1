"""Overlap detection between a candidate range and existing reservations."""

from __future__ import annotations

from datetime import datetime

from django.db.models import Q, QuerySet  # type: ignore

from .domain.lifecycle import BLOCKING_STATUSES
from .models import Reservation


class ConflictDetector:
    """
    Stateless overlap check against the caller's view of committed state.

    Ranges are half-open, so [10:00, 11:00) and [11:00, 12:00) never conflict.
    Locking is the caller's job (see ReservationService.create_hold).
    """

    def conflicting(
        self,
        court_id,
        start_at: datetime,
        end_at: datetime,
        exclude_reservation_id=None,
    ) -> QuerySet:
        overlap = Q(start_at__lt=end_at) & Q(end_at__gt=start_at)
        queryset = Reservation.objects.filter(
            court_id=court_id,
            status__in=BLOCKING_STATUSES,
        ).filter(overlap)
        if exclude_reservation_id is not None:
            queryset = queryset.exclude(pk=exclude_reservation_id)
        return queryset

    def has_conflict(
        self,
        court_id,
        start_at: datetime,
        end_at: datetime,
        exclude_reservation_id=None,
    ) -> bool:
        return self.conflicting(court_id, start_at, end_at, exclude_reservation_id).exists()
