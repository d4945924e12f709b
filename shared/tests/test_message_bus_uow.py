from dataclasses import dataclass
from unittest import mock

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import RemoteUnitOfWork
from shared.domain.base import Aggregate, DomainEvent


@dataclass(kw_only=True)
class SomethingHappened(DomainEvent):
    name: str


@dataclass
class Ping:
    value: int


@dataclass(eq=False)
class Thing(Aggregate):
    name: str = ""


def test_events_reach_every_handler(bus):
    first, second = mock.Mock(), mock.Mock()
    bus.register_event_handler(SomethingHappened, first)
    bus.register_event_handler(SomethingHappened, second)
    event = SomethingHappened(name="a")

    bus.publish_events([event])

    first.assert_called_once_with(event)
    second.assert_called_once_with(event)


def test_failing_handler_does_not_stop_others(bus):
    broken = mock.Mock(side_effect=RuntimeError("boom"))
    healthy = mock.Mock()
    bus.register_event_handler(SomethingHappened, broken)
    bus.register_event_handler(SomethingHappened, healthy)

    bus.publish_events([SomethingHappened(name="a")])

    healthy.assert_called_once()


def test_unregister(bus):
    handler = mock.Mock()
    bus.register_event_handler(SomethingHappened, handler)
    bus.unregister_event_handler(SomethingHappened, handler)

    bus.publish_events([SomethingHappened(name="a")])

    handler.assert_not_called()


def test_one_handler_per_command(bus):
    bus.register_command_handler(Ping, lambda command: command.value + 1)

    assert bus.handle_command(Ping(1)) == 2
    with pytest.raises(ValueError):
        bus.register_command_handler(Ping, lambda command: None)
    with pytest.raises(ValueError):
        MessageBus().handle_command(Ping(1))


def test_event_serialises():
    data = SomethingHappened(aggregate_id="thing-1", name="a").to_dict()

    assert data["event_type"] == "SomethingHappened"
    assert data["aggregate_id"] == "thing-1"


def test_unit_of_work_publishes_on_success(bus, uow_factory):
    handler = mock.Mock()
    bus.register_event_handler(SomethingHappened, handler)
    thing = Thing(name="a")
    thing.add_event(SomethingHappened(name="a"))

    with uow_factory() as uow:
        uow.collect_events(thing)
        handler.assert_not_called()

    handler.assert_called_once()
    assert thing.events == []


def test_unit_of_work_discards_on_error(bus):
    handler = mock.Mock()
    bus.register_event_handler(SomethingHappened, handler)
    thing = Thing(name="a")
    thing.add_event(SomethingHappened(name="a"))

    with pytest.raises(RuntimeError):
        with RemoteUnitOfWork(bus=bus) as uow:
            uow.collect_events(thing)
            raise RuntimeError("remote call failed")

    handler.assert_not_called()


def test_entities_compare_by_id():
    assert Thing(id="1", name="a") == Thing(id="1", name="b")
    assert Thing(id="1") != Thing(id="2")
    assert len({Thing(id="1"), Thing(id="1")}) == 1
