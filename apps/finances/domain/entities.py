"""
Payment and escrow mirrors

Both records are owned by the hosted backend and the payment processor.
The app reads them, shows them and asks for changes; it never decides
their authoritative state.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from shared.domain.base import Entity
from shared.domain.value_objects import Money, to_decimal
from shared.infrastructure.rows import row_datetime


class PaymentStatus(Enum):
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    PARTIALLY_REFUNDED = 'partially_refunded'

    @classmethod
    def parse(cls, value: str | None) -> 'PaymentStatus':
        # older rows were written with 'paid' / 'success'
        if value in ('paid', 'success'):
            return cls.SUCCEEDED
        return cls(value or cls.PENDING.value)


class EscrowStatus(Enum):
    HELD = 'held'
    RELEASED = 'released'
    DISPUTED = 'disputed'
    REFUNDED = 'refunded'


@dataclass(eq=False)
class Payment(Entity):
    booking_id: str = ''
    amount: Decimal = Decimal('0')
    currency: str = 'USD'
    platform_fee: Decimal = Decimal('0')
    host_amount: Decimal = Decimal('0')
    status: PaymentStatus = PaymentStatus.PENDING
    stripe_payment_intent_id: str = ''

    @classmethod
    def from_row(cls, row: dict) -> 'Payment':
        return cls(
            id=row['id'],
            created_at=row_datetime(row.get('created_at')),
            updated_at=row_datetime(row.get('updated_at')),
            booking_id=row.get('booking_id') or '',
            amount=to_decimal(row.get('amount')),
            currency=(row.get('currency') or 'USD').upper(),
            platform_fee=to_decimal(row.get('platform_fee')),
            host_amount=to_decimal(row.get('host_amount')),
            status=PaymentStatus.parse(row.get('status')),
            stripe_payment_intent_id=row.get('stripe_payment_intent_id') or '',
        )

    @property
    def total(self) -> Money:
        return Money(self.amount, self.currency)

    @property
    def fee(self) -> Money:
        return Money(self.platform_fee, self.currency)


@dataclass(eq=False)
class Escrow(Entity):
    booking_id: str = ''
    held_amount: Decimal = Decimal('0')
    released_amount: Decimal = Decimal('0')
    currency: str = 'USD'
    status: EscrowStatus = EscrowStatus.HELD
    release_date: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> 'Escrow':
        return cls(
            id=row['id'],
            created_at=row_datetime(row.get('created_at')),
            updated_at=row_datetime(row.get('updated_at')),
            booking_id=row.get('booking_id') or '',
            held_amount=to_decimal(row.get('held_amount')),
            released_amount=to_decimal(row.get('released_amount')),
            currency=(row.get('currency') or 'USD').upper(),
            status=EscrowStatus(row.get('status') or EscrowStatus.HELD.value),
            release_date=row_datetime(row.get('release_date')),
        )

    @property
    def remaining(self) -> Decimal:
        return max(self.held_amount - self.released_amount, Decimal('0'))

    @property
    def is_held(self) -> bool:
        return self.status == EscrowStatus.HELD
