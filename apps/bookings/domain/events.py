"""
Booking Domain Events

Published through the message bus after the remote calls of a use case
succeeded. Status changes made by the hosted backend do not produce these;
they arrive as realtime row changes instead.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    A booking row was inserted after the payment step succeeded

    The row starts `pending`; the backend confirms it once the payment
    processor reports the charge.
    """
    booking_id: str
    listing_id: str
    guest_id: str
    check_in: str
    check_out: str
    total_amount: Decimal
    currency: str
    payment_intent_id: str = ''


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """A cancellation was requested and accepted by the hosted store"""
    booking_id: str
    listing_id: str
    cancelled_by: str
    cancelled_by_role: str
    reason: str
    refundable_amount: Decimal
    currency: str
    old_status: str


@dataclass(kw_only=True)
class RefundIssued(DomainEvent):
    """The payment processor accepted a refund for a cancelled booking"""
    booking_id: str
    payment_id: str
    refund_id: str
    amount: Decimal
    currency: str
