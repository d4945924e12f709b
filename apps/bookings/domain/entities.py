"""
Booking Domain Entities

- Booking: local mirror of a `bookings` row
- BookingStatus: the statuses the hosted backend writes

Status transitions are enforced server-side. The aggregate only checks
whether a request makes sense before it is sent, and records the events
that follow an accepted request.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange, Money, to_decimal
from shared.infrastructure.rows import isoformat, row_datetime

from apps.finances.domain.entities import Payment
from apps.listings.domain.entities import Listing


class BookingStatus(Enum):
    """
    Booking statuses as written by the backend

    - PENDING: created after payment, waiting for the processor webhook
    - CONFIRMED: paid and confirmed
    - COMPLETED: guest checked out
    - CANCELLED: cancelled without a refund
    - REFUNDED / PARTIALLY_REFUNDED: cancelled and money returned
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'
    PARTIALLY_REFUNDED = 'partially_refunded'


CLOSED_STATUSES = (
    BookingStatus.CANCELLED,
    BookingStatus.COMPLETED,
    BookingStatus.REFUNDED,
    BookingStatus.PARTIALLY_REFUNDED,
)


class BookingRole(Enum):
    GUEST = 'guest'
    HOST = 'host'


@dataclass(eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - check_out is after check_in
    - guests is at least 1
    """

    listing_id: str = ''
    guest_id: str = ''
    host_id: str = ''

    check_in: datetime | None = None
    check_out: datetime | None = None
    guests: int = 1

    # Pricing, as computed when the booking was placed
    nights: int = 0
    base_amount: Decimal = Decimal('0')
    cleaning_fee: Decimal = Decimal('0')
    service_fee: Decimal = Decimal('0')
    taxes: Decimal = Decimal('0')
    total_amount: Decimal = Decimal('0')
    currency: str = 'USD'

    status: BookingStatus = BookingStatus.PENDING
    stripe_payment_intent_id: str = ''
    escrow_id: str | None = None

    cancellation_reason: str = ''
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    refunded_amount: Decimal | None = None

    # Embedded relations when fetched with them
    listing: Listing | None = field(default=None, repr=False)
    payments: List[Payment] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if self.guests < 1:
            raise ValueError("Guests count must be at least 1")
        if self.check_in and self.check_out and self.check_out <= self.check_in:
            raise ValueError("Check-out must be after check-in")

    @classmethod
    def from_row(cls, row: dict) -> 'Booking':
        listing_row = row.get('listing')
        return cls(
            id=row['id'],
            created_at=row_datetime(row.get('created_at')),
            updated_at=row_datetime(row.get('updated_at')),
            listing_id=row.get('listing_id') or (listing_row or {}).get('id', ''),
            guest_id=row.get('guest_id') or '',
            host_id=row.get('host_id') or (listing_row or {}).get('host_id', ''),
            check_in=row_datetime(row.get('check_in')),
            check_out=row_datetime(row.get('check_out')),
            guests=row.get('guests') or row.get('guest_count') or 1,
            nights=row.get('nights') or 0,
            base_amount=to_decimal(row.get('base_amount')),
            cleaning_fee=to_decimal(row.get('cleaning_fee')),
            service_fee=to_decimal(row.get('service_fee')),
            taxes=to_decimal(row.get('taxes')),
            total_amount=to_decimal(row.get('total_amount')),
            currency=(row.get('currency') or 'USD').upper(),
            status=BookingStatus(row.get('status') or BookingStatus.PENDING.value),
            stripe_payment_intent_id=row.get('stripe_payment_intent_id') or '',
            escrow_id=row.get('escrow_id'),
            cancellation_reason=row.get('cancellation_reason') or '',
            cancelled_by=row.get('cancelled_by'),
            cancelled_at=row_datetime(row.get('cancelled_at')),
            refunded_amount=(
                to_decimal(row['refunded_amount']) if row.get('refunded_amount') is not None else None
            ),
            listing=Listing.from_row(listing_row) if listing_row and 'id' in listing_row else None,
            payments=[Payment.from_row(item) for item in row.get('payments') or []],
        )

    @property
    def total(self) -> Money:
        return Money(self.total_amount, self.currency)

    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @property
    def primary_payment(self) -> Payment | None:
        return self.payments[0] if self.payments else None

    @property
    def is_active(self) -> bool:
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    def can_be_cancelled(self) -> bool:
        return self.status not in CLOSED_STATUSES

    def can_be_cancelled_by(self, user_id: str, role: BookingRole) -> bool:
        """Guests cancel their own bookings, hosts the bookings of their listings"""
        if not self.can_be_cancelled():
            return False
        if role == BookingRole.GUEST:
            return self.guest_id == user_id
        return self.host_id == user_id

    def record_cancellation(
        self,
        *,
        reason: str,
        cancelled_by: str,
        role: BookingRole,
        refundable_amount: Decimal,
        cancelled_at: datetime,
    ) -> dict:
        """
        Apply an accepted cancellation locally

        Returns the column values sent to the hosted store.
        """
        from apps.bookings.domain.events import BookingCancelled

        old_status = self.status
        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = cancelled_at
        self.refunded_amount = refundable_amount

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            listing_id=self.listing_id,
            cancelled_by=cancelled_by,
            cancelled_by_role=role.value,
            reason=reason,
            refundable_amount=refundable_amount,
            currency=self.currency,
            old_status=old_status.value,
        ))

        return {
            'status': self.status.value,
            'cancellation_reason': reason,
            'cancelled_by': cancelled_by,
            'cancelled_at': isoformat(cancelled_at),
            'refunded_amount': str(refundable_amount),
        }

    def __str__(self):
        return f"Booking {self.id} ({self.status.value})"
