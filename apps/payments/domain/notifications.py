"""
Payment notifications

Closed set of variants a validated webhook payload turns into. The ingestor
dispatches on the variant type, never on raw status strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class PaymentNotification(ValueObject):
    provider_event_id: str
    status: str
    status_detail: str = ""
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_id: Optional[str] = None


@dataclass(frozen=True)
class PaymentApproved(PaymentNotification):
    pass


@dataclass(frozen=True)
class PaymentPending(PaymentNotification):
    pass


@dataclass(frozen=True)
class PaymentFailed(PaymentNotification):
    pass


@dataclass(frozen=True)
class PaymentCancelled(PaymentNotification):
    pass


VARIANTS_BY_STATUS: dict[str, type[PaymentNotification]] = {
    "approved": PaymentApproved,
    "pending": PaymentPending,
    "in_process": PaymentPending,
    "failed": PaymentFailed,
    "rejected": PaymentFailed,
    "cancelled": PaymentCancelled,
    "canceled": PaymentCancelled,
}
