from datetime import date, datetime, time, timedelta, timezone

from apps.events.models import DomainEventRecord

CORDOBA = timezone(timedelta(hours=-3))
MONDAY = date(2026, 3, 2)


def at(hour, minute=0, day=MONDAY):
    return datetime.combine(day, time(hour, minute), tzinfo=CORDOBA)


def events_for(reservation):
    return list(
        DomainEventRecord.objects.filter(payload__reservation_id=str(reservation.pk))
        .filter(type__startswith="reservation.")
        .order_by("id")
    )
