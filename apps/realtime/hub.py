"""
Realtime hub

Channels are keyed by name. Each channel holds bindings of
(table, filter, callback) and the status callbacks of its owner. A row
change is delivered to every binding of every channel whose table and
filter match it; one failing callback does not stop the others.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from shared.application.message_bus import message_bus

from apps.realtime.domain.changes import ChangeEvent, RowFilter, SubscriptionStatus
from apps.realtime.domain.events import RowChanged

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], None]
StatusCallback = Callable[[SubscriptionStatus], None]


@dataclass
class Binding:
    table: str
    callback: ChangeCallback
    filter: Optional[RowFilter] = None

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        return self.filter is None or self.filter.matches(change.row)


@dataclass
class Channel:
    name: str
    bindings: List[Binding] = field(default_factory=list)
    status_callbacks: List[StatusCallback] = field(default_factory=list)
    status: SubscriptionStatus | None = None

    def set_status(self, status: SubscriptionStatus):
        self.status = status
        for callback in list(self.status_callbacks):
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Status callback of channel {self.name} failed: {e}", exc_info=True)


class RealtimeHub:
    def __init__(self):
        self._channels: Dict[str, Channel] = {}
        self._lock = threading.RLock()

    def subscribe(
        self,
        channel_name: str,
        table: str,
        callback: ChangeCallback,
        filter: RowFilter | str | None = None,
        on_status: StatusCallback | None = None,
    ) -> Channel:
        if isinstance(filter, str):
            filter = RowFilter.parse(filter)

        with self._lock:
            channel = self._channels.get(channel_name)
            if channel is None:
                channel = self._channels[channel_name] = Channel(channel_name)
            channel.bindings.append(Binding(table=table, callback=callback, filter=filter))
            if on_status is not None:
                channel.status_callbacks.append(on_status)

        logger.debug(f"Channel {channel_name} listening to {table} ({filter or 'all rows'})")
        channel.set_status(SubscriptionStatus.SUBSCRIBED)
        return channel

    def channel(self, channel_name: str) -> Channel | None:
        return self._channels.get(channel_name)

    @property
    def channel_names(self) -> List[str]:
        with self._lock:
            return list(self._channels)

    def report_status(self, channel_name: str, status: SubscriptionStatus):
        """Push a lifecycle change (error, timeout) to a channel's owner"""
        channel = self.channel(channel_name)
        if channel is None:
            return
        channel.set_status(status)
        if status == SubscriptionStatus.CLOSED:
            self.remove_channel(channel_name)

    def remove_channel(self, channel_name: str) -> bool:
        with self._lock:
            channel = self._channels.pop(channel_name, None)
        if channel is None:
            return False
        if channel.status != SubscriptionStatus.CLOSED:
            channel.set_status(SubscriptionStatus.CLOSED)
        logger.debug(f"Channel {channel_name} removed")
        return True

    def dispatch(self, change: ChangeEvent) -> int:
        """Deliver a change to every matching binding; returns how many got it"""
        with self._lock:
            targets = [
                (channel.name, binding)
                for channel in self._channels.values()
                for binding in channel.bindings
                if binding.matches(change)
            ]

        delivered = 0
        for channel_name, binding in targets:
            try:
                binding.callback(change)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Realtime callback on channel {channel_name} failed for "
                    f"{change.event_type.value} {change.table}: {e}",
                    exc_info=True,
                )
        return delivered

    def handle_row_changed(self, event: RowChanged):
        self.dispatch(event.change)

    def attach(self, bus=message_bus):
        bus.register_event_handler(RowChanged, self.handle_row_changed)

    def detach(self, bus=message_bus):
        bus.unregister_event_handler(RowChanged, self.handle_row_changed)

    def clear(self):
        for name in self.channel_names:
            self.remove_channel(name)


# Process-wide hub; attached to the message bus when the app is ready.
hub = RealtimeHub()
