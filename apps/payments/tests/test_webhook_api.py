"""Tests for the payment webhook endpoint."""

from __future__ import annotations

import uuid
from datetime import datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability.models import AvailabilityRule, DayOfWeek
from apps.courts.models import Court
from apps.payments.models import PaymentEvent
from apps.reservations.domain.client import ClientInfo
from apps.reservations.models import Reservation
from apps.reservations.services import default_service

CORDOBA = ZoneInfo("America/Argentina/Cordoba")


def next_monday():
    today = timezone.now().astimezone(CORDOBA).date()
    return today + timedelta(days=(7 - today.weekday()) % 7 + 7)


class PaymentWebhookAPITests(APITestCase):
    def setUp(self) -> None:
        self.court = Court.objects.create(
            club_id=uuid.uuid4(),
            name="Cancha Central",
            price_per_hour=Decimal("9000.00"),
            time_zone="America/Argentina/Cordoba",
        )
        AvailabilityRule.objects.create(
            court=self.court,
            day_of_week=DayOfWeek.MONDAY,
            start_time=time(18),
            end_time=time(22),
        )
        monday = next_monday()
        self.reservation = default_service().create_hold(
            self.court.pk,
            datetime.combine(monday, time(19), tzinfo=CORDOBA),
            datetime.combine(monday, time(20), tzinfo=CORDOBA),
            client=ClientInfo(name="Martin Diaz"),
        )
        self.url = reverse("payments:webhook")

    def _post(self, event_id, data, reservation_id=None):
        body = {
            "id": event_id,
            "reservation_id": str(reservation_id or self.reservation.pk),
            "data": data,
        }
        return self.client.post(self.url, body, format="json")

    def test_approved_event_confirms_reservation(self) -> None:
        response = self._post("evt-1", {"status": "approved"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["duplicate"])
        self.assertEqual(response.data["reservation_status"], Reservation.Status.CONFIRMED)
        self.assertEqual(response.data["reservation_id"], str(self.reservation.pk))
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.CONFIRMED)

    def test_duplicate_delivery_is_acknowledged(self) -> None:
        self._post("evt-1", {"status": "approved"})
        response = self._post("evt-1", {"status": "approved"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["duplicate"])
        self.assertEqual(PaymentEvent.objects.filter(provider_event_id="evt-1").count(), 1)

    def test_unknown_reservation_returns_404(self) -> None:
        response = self._post("evt-2", {"status": "approved"}, reservation_id=uuid.uuid4())

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "unknown_reservation")
        self.assertTrue(PaymentEvent.objects.filter(provider_event_id="evt-2").exists())

    def test_malformed_payload_returns_400(self) -> None:
        response = self._post("evt-3", {"status": "teleported"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_payment_event")

    def test_missing_envelope_fields_return_400(self) -> None:
        response = self.client.post(self.url, {"reservation_id": str(self.reservation.pk)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PaymentEvent.objects.exists())

    def test_blank_event_id_returns_400(self) -> None:
        response = self._post("", {"status": "approved"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PaymentEvent.objects.exists())

    def test_state_conflict_returns_409(self) -> None:
        default_service().cancel(self.reservation.pk, reason="user left")

        response = self._post("evt-4", {"status": "approved"})

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_transition")
