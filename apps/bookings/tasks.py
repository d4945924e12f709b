"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import requests
from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.infrastructure.remote_store import RemoteStoreClient, RemoteStoreError
from apps.finances.repository import EscrowRepository

logger = logging.getLogger(__name__)

DEFAULT_RELEASE_HOURS = 24


def escrow_release_time(check_in: datetime) -> datetime:
    hours = getattr(settings, "ESCROW_AUTO_RELEASE_HOURS", DEFAULT_RELEASE_HOURS)
    return check_in + timedelta(hours=hours)


def schedule_escrow_release(booking_id: str, check_in: datetime):
    """Queue the escrow release for a stay, a fixed delay after check-in."""
    eta = escrow_release_time(check_in)
    if eta <= timezone.now():
        eta = None
    logger.info(f"Scheduling escrow release for booking {booking_id} at {eta or 'now'}")
    return trigger_escrow_release.apply_async(args=[booking_id], eta=eta)


@shared_task(
    name="bookings.trigger_escrow_release",
    autoretry_for=(requests.ConnectionError, requests.Timeout),
    retry_backoff=True,
    max_retries=5,
)
def trigger_escrow_release(booking_id: str) -> dict:
    """
    Ask the hosted backend to release the escrow of a booking.

    The backend decides whether the stay is eligible; a refusal is logged
    and not retried.
    """
    store = RemoteStoreClient(api_key=getattr(settings, "REMOTE_STORE_SERVICE_KEY", "") or None)
    try:
        result = EscrowRepository(store).request_release(booking_id)
    except RemoteStoreError as e:
        if e.status_code is not None and e.status_code >= 500:
            raise
        logger.warning(f"Escrow release refused for booking {booking_id}: {e.message}")
        return {"released": False, "error": e.message}

    logger.info(f"Escrow release requested for booking {booking_id}")
    return {"released": True, **(result if isinstance(result, dict) else {})}
