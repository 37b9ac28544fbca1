"""
Reservation lifecycle

    hold -> payment_pending -> confirmed
    hold | payment_pending -> expired
    hold | payment_pending | confirmed -> cancelled

confirmed, cancelled and expired accept nothing else.
"""

from __future__ import annotations

HOLD = "hold"
PAYMENT_PENDING = "payment_pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
EXPIRED = "expired"

TRANSITIONS: dict[str, frozenset[str]] = {
    HOLD: frozenset({PAYMENT_PENDING, CONFIRMED, EXPIRED, CANCELLED}),
    PAYMENT_PENDING: frozenset({CONFIRMED, EXPIRED, CANCELLED}),
    CONFIRMED: frozenset({CANCELLED}),
    CANCELLED: frozenset(),
    EXPIRED: frozenset(),
}

# Statuses that occupy the court
BLOCKING_STATUSES = (HOLD, PAYMENT_PENDING, CONFIRMED)

# Statuses carrying a deadline
EXPIRABLE_STATUSES = (HOLD, PAYMENT_PENDING)


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())
