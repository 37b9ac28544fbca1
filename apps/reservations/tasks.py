"""Celery tasks for the reservations domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .sweeper import HoldExpirySweeper

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="reservations.sweep_expired_holds")
def sweep_expired_holds() -> dict[str, int]:
    """
    Expire holds and payment-pending reservations past their deadline.

    Runs every RESERVATION_SWEEP_INTERVAL_SECONDS. Safe to run twice in a
    row: the second run finds nothing to do.

    Returns:
        dict: {"expired": number of reservations expired}
    """
    expired = HoldExpirySweeper().sweep_expired_holds()
    logger.debug(f"sweep_expired_holds finished, expired={expired}")
    return {"expired": expired}
