"""
Row subscriptions

A subscription mirrors one row, or the rows of one owner, of a single
table: it loads them once, then applies every matching change it is handed
by the hub. Inserts and updates replace the mirrored row, deletes drop it.
Nothing is re-ordered; the last change applied wins.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from shared.infrastructure.remote_store import RemoteStoreClient, RemoteStoreError

from apps.bookings.domain.entities import Booking, BookingRole
from apps.finances.domain.entities import Escrow, Payment
from apps.realtime.domain.changes import ChangeEvent, ChangeType, RowFilter, SubscriptionStatus
from apps.realtime.hub import RealtimeHub, hub as default_hub

logger = logging.getLogger(__name__)


class RowSubscription:
    """
    Base class for table subscriptions

    Subclasses set `table`, `label` and `entity` (a class with from_row)
    and decide whether they follow one row or many.
    """

    table: str = ''
    label: str = 'row'
    entity: Any = None

    def __init__(
        self,
        store: RemoteStoreClient,
        column: str,
        value: str,
        *,
        many: bool = False,
        channel_name: str | None = None,
        hub: RealtimeHub | None = None,
        on_change: Callable[['RowSubscription'], None] | None = None,
    ):
        self.store = store
        self.filter = RowFilter(column=column, value=str(value))
        self.many = many
        self.channel_name = channel_name or f"{self.table}_{column}_{value}"
        self.hub = hub or default_hub
        self.on_change = on_change

        self.rows: List[Any] = []
        self.loading = True
        self.error: Optional[str] = None
        self.status: SubscriptionStatus | None = None

    @property
    def row(self):
        return self.rows[0] if self.rows else None

    def start(self) -> 'RowSubscription':
        self.loading = True
        self.error = None
        try:
            self.rows = self._fetch()
        except RemoteStoreError as e:
            logger.error(f"Error loading {self.label} for {self.filter}: {e.message}")
            self.error = e.message or f"Failed to load {self.label}"
            return self
        finally:
            self.loading = False

        self.hub.subscribe(
            self.channel_name,
            self.table,
            self.apply,
            filter=self.filter,
            on_status=self.handle_status,
        )
        return self

    def stop(self):
        self.hub.remove_channel(self.channel_name)

    def _fetch(self) -> List[Any]:
        filters = {self.filter.column: self.filter.value}
        if self.many:
            return [self._build(row) for row in self.store.select(self.table, filters=filters)]
        # a missing row is an empty mirror, not an error
        row = self.store.maybe_one(self.table, filters=filters)
        return [self._build(row)] if row else []

    def _build(self, row: Dict[str, Any]):
        return self.entity.from_row(row) if self.entity else row

    def apply(self, change: ChangeEvent):
        if change.event_type == ChangeType.DELETE:
            removed_id = change.row_id
            self.rows = [row for row in self.rows if self._id_of(row) != removed_id] if self.many else []
        else:
            updated = self._build(change.new)
            if not self.many:
                self.rows = [updated]
            elif any(self._id_of(row) == change.row_id for row in self.rows):
                self.rows = [updated if self._id_of(row) == change.row_id else row for row in self.rows]
            else:
                self.rows = [*self.rows, updated]

        logger.debug(f"{self.label} {change.event_type.value} applied on {self.channel_name}")
        if self.on_change is not None:
            self.on_change(self)

    def handle_status(self, status: SubscriptionStatus):
        self.status = status
        if status == SubscriptionStatus.CHANNEL_ERROR:
            self.error = f"Failed to subscribe to {self.label} updates"
        elif status == SubscriptionStatus.TIMED_OUT:
            self.error = f"{self.label.capitalize()} subscription timed out"
        else:
            logger.debug(f"{self.label} subscription {self.channel_name}: {status.value}")

    @staticmethod
    def _id_of(row) -> Any:
        return row.get('id') if isinstance(row, dict) else row.id


class BookingSubscription(RowSubscription):
    """One booking by id, or every booking of a guest or host"""

    table = 'bookings'
    label = 'booking'
    entity = Booking

    def __init__(
        self,
        store: RemoteStoreClient,
        booking_id: str | None = None,
        user_id: str | None = None,
        role: BookingRole = BookingRole.GUEST,
        **kwargs,
    ):
        if booking_id:
            super().__init__(store, 'id', booking_id, channel_name=f"booking_{booking_id}", **kwargs)
        elif user_id:
            column = 'guest_id' if role == BookingRole.GUEST else 'host_id'
            super().__init__(
                store, column, user_id,
                many=True,
                channel_name=f"user_bookings_{user_id}_{role.value}",
                **kwargs,
            )
        else:
            raise ValueError("BookingSubscription needs a booking_id or a user_id")


class PaymentSubscription(RowSubscription):
    """One payment by id, or all payments of a booking"""

    table = 'payments'
    label = 'payment'
    entity = Payment

    def __init__(self, store: RemoteStoreClient, payment_id: str | None = None, booking_id: str | None = None, **kwargs):
        if payment_id:
            super().__init__(store, 'id', payment_id, channel_name=f"payment_{payment_id}", **kwargs)
        elif booking_id:
            super().__init__(
                store, 'booking_id', booking_id,
                many=True,
                channel_name=f"booking_payments_{booking_id}",
                **kwargs,
            )
        else:
            raise ValueError("PaymentSubscription needs a payment_id or a booking_id")

    @property
    def payments(self) -> List[Payment]:
        return list(self.rows)


class EscrowSubscription(RowSubscription):
    table = 'escrow'
    label = 'escrow'
    entity = Escrow

    def __init__(self, store: RemoteStoreClient, escrow_id: str | None = None, booking_id: str | None = None, **kwargs):
        if escrow_id:
            super().__init__(store, 'id', escrow_id, channel_name=f"escrow_{escrow_id}", **kwargs)
        elif booking_id:
            super().__init__(store, 'booking_id', booking_id, channel_name=f"booking_escrow_{booking_id}", **kwargs)
        else:
            raise ValueError("EscrowSubscription needs an escrow_id or a booking_id")
