"""Domain events emitted by payment ingestion."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class PaymentReceived(DomainEvent):
    """A new (non-duplicate) provider event was recorded."""

    provider_event_id: str
    reservation_ref: str
    payment_status: str

    @property
    def event_type(self) -> str:
        return "payment.received"

    def payload(self) -> dict:
        return {
            "provider_event_id": self.provider_event_id,
            "reservation_id": self.reservation_ref,
            "status": self.payment_status,
        }
