"""
Reservation state machine

ReservationService owns every status write on Reservation rows. Each
operation runs as one unit of work: the row is re-read under lock, the
transition is validated against the lifecycle table, and exactly one
ReservationTransitioned event is recorded with the change.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from functools import lru_cache
from typing import Iterable, Optional

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db.models import Q  # type: ignore

from apps.availability.services import AvailabilityCalculator
from apps.courts.registry import CourtRegistry
from shared.application.uow import DjangoUnitOfWork
from shared.domain.clock import Clock, system_clock
from shared.domain.exceptions import (
    HoldExpired,
    InvalidRange,
    InvalidTransition,
    SlotConflict,
    SlotUnavailable,
    UnknownReservation,
)
from shared.domain.value_objects import Money, TimeRange

from .conflicts import ConflictDetector
from .domain.client import ClientInfo
from .domain.events import ReservationTransitioned
from .domain.lifecycle import (
    BLOCKING_STATUSES,
    CANCELLED,
    CONFIRMED,
    EXPIRABLE_STATUSES,
    EXPIRED,
    HOLD,
    PAYMENT_PENDING,
    can_transition,
)
from .locks import CourtLocks, court_locks
from .models import Reservation

logger = logging.getLogger(__name__)


class ReservationService:
    def __init__(
        self,
        clock: Clock | None = None,
        registry: CourtRegistry | None = None,
        calculator: AvailabilityCalculator | None = None,
        detector: ConflictDetector | None = None,
        locks: CourtLocks | None = None,
        recorder=None,
        bus=None,
    ):
        self.clock = clock or system_clock
        self.registry = registry or CourtRegistry()
        self.calculator = calculator or AvailabilityCalculator(self.registry)
        self.detector = detector or ConflictDetector()
        self.locks = locks or court_locks
        self._recorder = recorder
        self._bus = bus

    def _uow(self) -> DjangoUnitOfWork:
        return DjangoUnitOfWork(recorder=self._recorder, bus=self._bus)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, reservation_id) -> Reservation:
        try:
            return Reservation.objects.select_related("court").get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValidationError, ValueError):
            raise UnknownReservation(f"Reservation {reservation_id} not found")

    def list_for_court(
        self,
        court_id,
        date_from: date,
        date_to: date,
        status: str | Iterable[str] | None = None,
        include_expired_holds: bool = False,
    ) -> list[Reservation]:
        """
        Reservations of a court overlapping the UTC days [date_from, date_to].

        Defaults to the statuses that occupy the court, leaving out holds
        whose deadline already passed but that the sweeper has not reached.
        """
        if date_to < date_from:
            raise InvalidRange("date_to must not be before date_from")
        court = self.registry.get(court_id)

        window_start = datetime.combine(date_from, time.min, tzinfo=dt_timezone.utc)
        window_end = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=dt_timezone.utc)

        queryset = Reservation.objects.filter(
            court=court,
            start_at__lt=window_end,
            end_at__gt=window_start,
        )
        if status is None:
            queryset = queryset.filter(status__in=BLOCKING_STATUSES)
        elif isinstance(status, str):
            queryset = queryset.filter(status=status)
        else:
            queryset = queryset.filter(status__in=list(status))

        if not include_expired_holds:
            queryset = queryset.exclude(
                Q(status__in=EXPIRABLE_STATUSES) & Q(expires_at__lte=self.clock.now())
            )
        return list(queryset.order_by("start_at"))

    # ------------------------------------------------------------------
    # Hold creation
    # ------------------------------------------------------------------

    def _validate_range(self, start_at: datetime, end_at: datetime, now: datetime) -> TimeRange:
        if start_at is None or end_at is None:
            raise InvalidRange("start_at and end_at are required")
        if start_at.tzinfo is None or end_at.tzinfo is None:
            raise InvalidRange("start_at and end_at must be timezone-aware")
        if start_at >= end_at:
            raise InvalidRange("start_at must be before end_at")
        if start_at < now - settings.RESERVATION_PAST_TOLERANCE:
            raise InvalidRange("Cannot book a slot in the past")
        return TimeRange(start_at, end_at)

    def create_hold(
        self,
        court_id,
        start_at: datetime,
        end_at: datetime,
        *,
        client: ClientInfo,
        ttl: Optional[timedelta] = None,
    ) -> Reservation:
        """
        Hold [start_at, end_at) on a court for ttl (RESERVATION_HOLD_TTL by default).

        Raises:
            InvalidRange: malformed or past range, non-positive ttl
            UnknownCourt: court does not exist
            SlotUnavailable: range not inside the court's open slots
            SlotConflict: range overlaps an active reservation
        """
        period = self._validate_range(start_at, end_at, self.clock.now())
        ttl = settings.RESERVATION_HOLD_TTL if ttl is None else ttl
        if ttl <= timedelta(0):
            raise InvalidRange("Hold ttl must be positive")

        court = self.registry.get(court_id)
        if not court.is_active:
            raise SlotUnavailable(f"Court {court.pk} is not active")
        self.calculator.open_slots_covering(court, start_at, end_at)

        price = (Money(court.price_per_hour, court.currency) * period.hours).rounded()

        with self.locks.hold(court.pk):
            with self._uow() as uow:
                court = self.registry.get_for_update(court.pk)
                now = self.clock.now()

                self._reclaim_stale_holds(uow, court.pk, start_at, end_at, now)

                if self.detector.has_conflict(court.pk, start_at, end_at):
                    logger.warning(f"Hold rejected on court {court.pk}: {period} overlaps an active reservation")
                    raise SlotConflict(f"{period} overlaps an active reservation on court {court.pk}")

                reservation = Reservation.objects.create(
                    court=court,
                    start_at=start_at,
                    end_at=end_at,
                    status=HOLD,
                    expires_at=now + ttl,
                    client_name=client.name.strip(),
                    client_email=client.email,
                    client_phone=client.phone,
                    price=price.amount,
                    currency=price.currency,
                )
                uow.add_event(
                    ReservationTransitioned(reservation.pk, court.pk, None, HOLD, occurred_at=now)
                )

        logger.info(f"Created hold {reservation.pk} on court {court.pk} for {period}, expires {reservation.expires_at}")
        return reservation

    def _reclaim_stale_holds(self, uow, court_id, start_at: datetime, end_at: datetime, now: datetime) -> None:
        """Expire overlapping holds whose deadline passed before the sweeper got to them."""

        stale = (
            Reservation.objects.select_for_update()
            .filter(
                court_id=court_id,
                status__in=EXPIRABLE_STATUSES,
                expires_at__lte=now,
                start_at__lt=end_at,
                end_at__gt=start_at,
            )
            .order_by("expires_at")
        )
        for reservation in stale:
            self._move(uow, reservation, EXPIRED, now, expired_at=now)
            logger.info(f"Reclaimed stale hold {reservation.pk} on court {court_id}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self, reservation_id):
        court_id = self.get(reservation_id).court_id
        with self.locks.hold(court_id):
            with self._uow() as uow:
                reservation = Reservation.objects.select_for_update().get(pk=reservation_id)
                yield reservation, uow

    def _move(self, uow, reservation: Reservation, target: str, now: datetime, **changes) -> Reservation:
        previous = reservation.status
        if not can_transition(previous, target):
            logger.warning(f"Rejected transition {previous} -> {target} for reservation {reservation.pk}")
            raise InvalidTransition(f"Reservation {reservation.pk} cannot move from {previous} to {target}")

        reservation.status = target
        for name, value in changes.items():
            setattr(reservation, name, value)
        reservation.save(update_fields=["status", *changes, "updated_at"])

        uow.add_event(
            ReservationTransitioned(reservation.pk, reservation.court_id, previous, target, occurred_at=now)
        )
        logger.info(f"Reservation {reservation.pk}: {previous} -> {target}")
        return reservation

    def mark_payment_pending(self, reservation_id) -> Reservation:
        with self._locked(reservation_id) as (reservation, uow):
            now = self.clock.now()
            if reservation.status != HOLD:
                raise InvalidTransition(
                    f"Reservation {reservation.pk} cannot move from {reservation.status} to {PAYMENT_PENDING}"
                )
            if reservation.deadline_passed(now):
                raise HoldExpired(f"Hold {reservation.pk} expired at {reservation.expires_at.isoformat()}")

            deadline = max(reservation.expires_at, now + settings.RESERVATION_PAYMENT_WINDOW)
            return self._move(uow, reservation, PAYMENT_PENDING, now, expires_at=deadline)

    def confirm(self, reservation_id) -> Reservation:
        """Confirm a held reservation. Confirming twice returns the same record."""

        with self._locked(reservation_id) as (reservation, uow):
            now = self.clock.now()
            if reservation.status == CONFIRMED:
                return reservation
            if reservation.status not in EXPIRABLE_STATUSES:
                raise InvalidTransition(
                    f"Reservation {reservation.pk} cannot move from {reservation.status} to {CONFIRMED}"
                )
            if reservation.deadline_passed(now):
                raise HoldExpired(f"Hold {reservation.pk} expired at {reservation.expires_at.isoformat()}")

            return self._move(uow, reservation, CONFIRMED, now, expires_at=None, confirmed_at=now)

    def cancel(self, reservation_id, reason: str = "", actor: str | None = None) -> Reservation:
        with self._locked(reservation_id) as (reservation, uow):
            if reservation.status == CANCELLED:
                return reservation
            now = self.clock.now()
            return self._move(
                uow,
                reservation,
                CANCELLED,
                now,
                expires_at=None,
                cancelled_at=now,
                cancellation_reason=reason or "",
                cancelled_by=(actor or "")[:64],
            )

    def expire_if_due(self, reservation_id) -> tuple[Reservation, bool]:
        """Expire when the deadline passed. Returns the record and whether it changed."""

        with self._locked(reservation_id) as (reservation, uow):
            now = self.clock.now()
            if reservation.status not in EXPIRABLE_STATUSES or not reservation.deadline_passed(now):
                return reservation, False
            return self._move(uow, reservation, EXPIRED, now, expired_at=now), True

    def expire(self, reservation_id) -> Reservation:
        reservation, _changed = self.expire_if_due(reservation_id)
        return reservation


@lru_cache(maxsize=1)
def default_service() -> ReservationService:
    """Service wired with the system clock and module-level collaborators."""

    return ReservationService()
