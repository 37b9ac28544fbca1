"""Append-only recorder for domain events."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from django.utils import timezone  # type: ignore

from .models import DomainEventRecord

logger = logging.getLogger(__name__)

DEFAULT_READ_LIMIT = 100
MAX_READ_LIMIT = 1000


class EventRecorder:
    """Writes domain events to the log and serves cursor reads."""

    def record(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        created_at: datetime | None = None,
    ) -> DomainEventRecord:
        """Append one entry. Call inside the transaction that made the change."""

        entry = DomainEventRecord.objects.create(
            type=event_type,
            payload=payload,
            created_at=created_at or timezone.now(),
        )
        logger.debug(f"Recorded domain event #{entry.pk} {event_type}")
        return entry

    def read(self, after: int = 0, limit: int = DEFAULT_READ_LIMIT) -> list[DomainEventRecord]:
        """Entries strictly after the cursor, oldest first."""

        if after < 0:
            raise ValueError("Cursor cannot be negative")
        limit = max(1, min(limit, MAX_READ_LIMIT))
        return list(DomainEventRecord.objects.filter(id__gt=after).order_by("id")[:limit])

    def latest_cursor(self) -> int:
        last = DomainEventRecord.objects.order_by("-id").values_list("id", flat=True).first()
        return last or 0

    def for_reservation(self, reservation_id) -> list[DomainEventRecord]:
        return list(
            DomainEventRecord.objects.filter(payload__reservation_id=str(reservation_id)).order_by("id")
        )


event_recorder = EventRecorder()
