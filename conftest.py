"""Shared pytest fixtures."""

from datetime import date
from decimal import Decimal
from unittest import mock

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import RemoteUnitOfWork
from shared.infrastructure.remote_store import RemoteStoreClient

from apps.listings.domain.entities import Listing


@pytest.fixture
def make_listing():
    def factory(**overrides) -> Listing:
        values = dict(
            id="listing-1",
            host_id="host-1",
            title="Loft by the river",
            nightly_rate=Decimal("100.00"),
            currency="USD",
            cleaning_fee=Decimal("50.00"),
            service_fee=Decimal("25.00"),
            max_guests=4,
            min_nights=1,
            max_nights=None,
            cancellation_policy="flexible",
        )
        values.update(overrides)
        return Listing(**values)

    return factory


@pytest.fixture
def listing(make_listing) -> Listing:
    return make_listing()


@pytest.fixture
def store():
    return mock.create_autospec(RemoteStoreClient, instance=True)


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def uow_factory(bus):
    return lambda: RemoteUnitOfWork(bus=bus)


@pytest.fixture
def future_stay():
    """A five-night stay far enough ahead to pass date validation"""
    year = date.today().year + 1
    return date(year, 10, 15), date(year, 10, 20)
