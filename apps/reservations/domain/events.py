"""Domain events emitted by reservation transitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass
class ReservationTransitioned(DomainEvent):
    """A reservation moved from one status to another (None for creation)."""

    reservation_id: UUID
    court_id: UUID
    from_status: Optional[str]
    to_status: str

    @property
    def event_type(self) -> str:
        return f"reservation.{self.to_status}"

    def payload(self) -> dict:
        return {
            "reservation_id": str(self.reservation_id),
            "court_id": str(self.court_id),
            "from": self.from_status,
            "to": self.to_status,
        }
