"""Remote access to booking rows."""

from __future__ import annotations

import logging
from typing import Any, List

from shared.infrastructure.remote_store import RemoteStoreClient

from .domain.entities import Booking, BookingRole, BookingStatus

logger = logging.getLogger(__name__)

BOOKING_TABLE = "bookings"
BOOKING_WITH_RELATIONS = "*, listing:listings(*), payments(*)"
SORTABLE_COLUMNS = ("check_in", "created_at", "total_amount")


class BookingRepository:
    """Reads and writes bookings in the hosted database."""

    def __init__(self, store: RemoteStoreClient):
        self.store = store

    def get(self, booking_id: str) -> Booking | None:
        """Booking with its listing and payments embedded"""
        row = self.store.maybe_one(BOOKING_TABLE, BOOKING_WITH_RELATIONS, filters={"id": booking_id})
        if row is None:
            logger.info(f"Booking {booking_id} not found")
            return None
        return Booking.from_row(row)

    def list_for_user(
        self,
        user_id: str,
        role: BookingRole = BookingRole.GUEST,
        *,
        status: BookingStatus | List[BookingStatus] | None = None,
        sort_by: str = "created_at",
        ascending: bool = False,
        limit: int | None = 20,
        offset: int = 0,
    ) -> List[Booking]:
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort bookings by {sort_by}")

        filters: dict[str, Any] = {
            "guest_id" if role == BookingRole.GUEST else "host_id": user_id,
        }
        if isinstance(status, BookingStatus):
            filters["status"] = status.value
        elif status:
            filters["status"] = [item.value for item in status]

        rows = self.store.select(
            BOOKING_TABLE,
            BOOKING_WITH_RELATIONS,
            filters=filters,
            order=sort_by,
            ascending=ascending,
            limit=limit,
            offset=offset,
        )
        return [Booking.from_row(row) for row in rows]

    def insert(self, values: dict[str, Any]) -> Booking:
        row = self.store.insert(BOOKING_TABLE, values)
        logger.info(f"Inserted booking {row.get('id')} for listing {values.get('listing_id')}")
        return Booking.from_row(row)

    def update(self, booking_id: str, values: dict[str, Any]) -> List[dict]:
        return self.store.update(BOOKING_TABLE, values, filters={"id": booking_id})
