"""Remote access to payment and escrow rows."""

from __future__ import annotations

import logging

from shared.infrastructure.remote_store import RemoteStoreClient

from .domain.entities import Escrow, EscrowStatus, Payment, PaymentStatus

logger = logging.getLogger(__name__)

PAYMENT_TABLE = "payments"
ESCROW_TABLE = "escrow"
ESCROW_RELEASE_FUNCTION = "trigger-escrow-release"


class PaymentRepository:
    def __init__(self, store: RemoteStoreClient):
        self.store = store

    def list_for_booking(self, booking_id: str) -> list[Payment]:
        rows = self.store.select(PAYMENT_TABLE, filters={"booking_id": booking_id}, order="created_at")
        return [Payment.from_row(row) for row in rows]

    def mark_refunded(self, payment_id: str, status: PaymentStatus) -> None:
        if status not in (PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED):
            raise ValueError(f"{status.value} is not a refund status")
        self.store.update(PAYMENT_TABLE, {"status": status.value}, filters={"id": payment_id})
        logger.info(f"Payment {payment_id} marked {status.value}")


class EscrowRepository:
    def __init__(self, store: RemoteStoreClient):
        self.store = store

    def get(self, escrow_id: str) -> Escrow | None:
        row = self.store.maybe_one(ESCROW_TABLE, filters={"id": escrow_id})
        return Escrow.from_row(row) if row else None

    def get_for_booking(self, booking_id: str) -> Escrow | None:
        row = self.store.maybe_one(ESCROW_TABLE, filters={"booking_id": booking_id})
        return Escrow.from_row(row) if row else None

    def mark_released(self, escrow_id: str) -> None:
        self.store.update(ESCROW_TABLE, {"status": EscrowStatus.RELEASED.value}, filters={"id": escrow_id})
        logger.info(f"Escrow {escrow_id} marked released")

    def request_release(self, booking_id: str) -> dict:
        """Ask the backend to release the held funds of a completed stay"""
        return self.store.invoke(ESCROW_RELEASE_FUNCTION, {"booking_id": booking_id}) or {}
