from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

import pytest
from django.utils import timezone

from shared.application.message_bus import MessageBus
from shared.infrastructure.remote_store import RemoteStoreError
from apps.bookings import handlers, tasks
from apps.bookings.domain.events import BookingCreated


@pytest.fixture
def apply_async():
    with mock.patch.object(tasks.trigger_escrow_release, "apply_async") as patched:
        yield patched


@pytest.fixture
def escrow_repo():
    with mock.patch("apps.bookings.tasks.EscrowRepository") as repo_class:
        yield repo_class.return_value


def test_release_is_scheduled_after_check_in(apply_async, settings):
    settings.ESCROW_AUTO_RELEASE_HOURS = 24
    check_in = timezone.now() + timedelta(days=3)

    tasks.schedule_escrow_release("booking-1", check_in)

    apply_async.assert_called_once_with(args=["booking-1"], eta=check_in + timedelta(hours=24))


def test_overdue_release_runs_now(apply_async):
    tasks.schedule_escrow_release("booking-1", timezone.now() - timedelta(days=5))

    apply_async.assert_called_once_with(args=["booking-1"], eta=None)


def test_trigger_release(escrow_repo):
    escrow_repo.request_release.return_value = {"escrow_id": "escrow-1"}

    result = tasks.trigger_escrow_release("booking-1")

    assert result == {"released": True, "escrow_id": "escrow-1"}
    escrow_repo.request_release.assert_called_once_with("booking-1")


def test_refused_release_is_not_retried(escrow_repo):
    escrow_repo.request_release.side_effect = RemoteStoreError("Stay not completed", status_code=400)

    result = tasks.trigger_escrow_release("booking-1")

    assert result == {"released": False, "error": "Stay not completed"}


def test_backend_failure_propagates(escrow_repo):
    escrow_repo.request_release.side_effect = RemoteStoreError("boom", status_code=500)

    with pytest.raises(RemoteStoreError):
        tasks.trigger_escrow_release("booking-1")


def test_booking_created_schedules_release():
    bus = MessageBus()
    handlers.register(bus)
    event = BookingCreated(
        aggregate_id="booking-1",
        booking_id="booking-1",
        listing_id="listing-1",
        guest_id="guest-1",
        check_in="2030-10-15",
        check_out="2030-10-20",
        total_amount=Decimal("625.00"),
        currency="USD",
    )

    with mock.patch("apps.bookings.handlers.schedule_escrow_release") as schedule:
        bus.publish_events([event])

    schedule.assert_called_once_with("booking-1", datetime(2030, 10, 15, tzinfo=dt_timezone.utc))
