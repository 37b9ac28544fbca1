"""
Payment event ingestion

Providers deliver webhooks at least once, out of order and sometimes
duplicated. Every delivery is first recorded under its provider event id in
its own committed unit; a repeated id is acknowledged without touching the
reservation. Only then is the payload validated and the state machine driven.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from django.db import IntegrityError  # type: ignore

from apps.reservations.domain.lifecycle import CONFIRMED, PAYMENT_PENDING
from apps.reservations.models import Reservation
from apps.reservations.services import ReservationService, default_service
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import InvalidPaymentEvent, InvalidTransition

from .domain.events import PaymentReceived
from .domain.notifications import (
    PaymentApproved,
    PaymentCancelled,
    PaymentFailed,
    PaymentNotification,
    PaymentPending,
)
from .models import PaymentEvent
from .serializers import PaymentPayloadSerializer

logger = logging.getLogger(__name__)

PROVIDER_ACTOR = "payment-provider"


@dataclass(frozen=True)
class Ack:
    provider_event_id: str
    duplicate: bool
    reservation_id: Optional[UUID] = None
    reservation_status: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "provider_event_id": self.provider_event_id,
            "duplicate": self.duplicate,
            "reservation_id": self.reservation_id,
            "reservation_status": self.reservation_status,
        }


def get_payment_event(provider_event_id: str) -> Optional[PaymentEvent]:
    return PaymentEvent.objects.filter(provider_event_id=provider_event_id).first()


class PaymentEventIngestor:
    def __init__(self, service: ReservationService | None = None, recorder=None, bus=None):
        self.service = service or default_service()
        self._recorder = recorder
        self._bus = bus

    def ingest(self, provider_event_id: str, reservation_ref: str, payload: Any) -> Ack:
        """
        Record and apply one provider event.

        Raises:
            InvalidPaymentEvent: blank id, or payload that is not a known variant
            UnknownReservation: reservation_ref does not resolve
            HoldExpired, InvalidTransition: the state machine refused the change
        """
        provider_event_id = str(provider_event_id or "").strip()
        if not provider_event_id:
            raise InvalidPaymentEvent("Payment event id is required")
        reservation_ref = str(reservation_ref or "").strip()

        if not self._record(provider_event_id, reservation_ref, payload):
            logger.info(f"Duplicate payment event {provider_event_id} acknowledged")
            return Ack(provider_event_id, duplicate=True)

        notification = self._parse(provider_event_id, payload)
        reservation = self.service.get(reservation_ref)
        reservation = self._apply(notification, reservation)

        logger.info(
            f"Payment event {provider_event_id} ({notification.status}) applied to "
            f"reservation {reservation.pk}, now {reservation.status}"
        )
        return Ack(provider_event_id, False, reservation.pk, reservation.status)

    def _record(self, provider_event_id: str, reservation_ref: str, payload: Any) -> bool:
        """Insert the event row. False when the id was seen before."""

        status = ""
        if isinstance(payload, dict):
            status = str(payload.get("status") or "")[:32]

        try:
            with DjangoUnitOfWork(recorder=self._recorder, bus=self._bus) as uow:
                PaymentEvent.objects.create(
                    provider_event_id=provider_event_id,
                    reservation_ref=reservation_ref[:64],
                    payment_status=status,
                    payload=payload if payload is not None else {},
                    processed_at=self.service.clock.now(),
                )
                uow.add_event(
                    PaymentReceived(
                        provider_event_id,
                        reservation_ref,
                        status,
                        occurred_at=self.service.clock.now(),
                    )
                )
        except IntegrityError:
            return False
        return True

    def _parse(self, provider_event_id: str, payload: Any) -> PaymentNotification:
        serializer = PaymentPayloadSerializer(data=payload)
        if not serializer.is_valid():
            logger.warning(f"Rejected payment event {provider_event_id}: {serializer.errors}")
            raise InvalidPaymentEvent(f"Malformed payment event {provider_event_id}: {serializer.errors}")
        return serializer.to_notification(provider_event_id)

    def _apply(self, notification: PaymentNotification, reservation: Reservation) -> Reservation:
        if isinstance(notification, PaymentApproved):
            return self.service.confirm(reservation.pk)

        if isinstance(notification, PaymentPending):
            if reservation.status == PAYMENT_PENDING:
                return reservation
            return self.service.mark_payment_pending(reservation.pk)

        if isinstance(notification, (PaymentFailed, PaymentCancelled)):
            if reservation.status == CONFIRMED:
                raise InvalidTransition(
                    f"Payment {notification.status} cannot cancel confirmed reservation {reservation.pk}"
                )
            return self.service.cancel(
                reservation.pk,
                reason=notification.status_detail or f"payment {notification.status}",
                actor=PROVIDER_ACTOR,
            )

        raise InvalidPaymentEvent(f"Unhandled payment notification {type(notification).__name__}")
