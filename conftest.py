"""Shared pytest fixtures for the booking apps."""

from datetime import datetime, time, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.availability.models import AvailabilityRule, DayOfWeek
from apps.courts.models import Court
from apps.reservations.domain.client import ClientInfo
from apps.reservations.locks import CourtLocks
from apps.reservations.services import ReservationService
from shared.application.message_bus import MessageBus
from shared.domain.clock import FixedClock


# Sunday 1 March 2026; the Monday rule below opens the next day
@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def court(db):
    return Court.objects.create(
        club_id=uuid4(),
        name="Cancha 1",
        price_per_hour=Decimal("12000.00"),
        currency="ARS",
        time_zone="America/Argentina/Cordoba",
    )


@pytest.fixture
def monday_rule(court):
    return AvailabilityRule.objects.create(
        court=court,
        day_of_week=DayOfWeek.MONDAY,
        start_time=time(8, 0),
        end_time=time(12, 0),
        slot_minutes=60,
    )


@pytest.fixture
def bus():
    return MessageBus()


@pytest.fixture
def service(clock, bus):
    return ReservationService(clock=clock, locks=CourtLocks(), bus=bus)


@pytest.fixture
def client_info():
    return ClientInfo(name="Lucia Perez", email="lucia@example.com", phone="+5493510000000")
