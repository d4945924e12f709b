"""
Listing Domain Entities

A Listing is a bookable property or experience. The app reads it from the
hosted database and never writes it back except through direct field
updates issued by the host screens (out of scope here).
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from shared.domain.base import Entity
from shared.domain.value_objects import Money, to_decimal
from shared.infrastructure.rows import row_date, row_datetime

DEFAULT_CURRENCY = 'USD'
DEFAULT_POLICY = 'flexible'


@dataclass(eq=False)
class Listing(Entity):
    """
    Listing mirror

    Key invariants:
    - max_guests is at least 1
    - min_nights is at least 1; max_nights, when set, is not below it
    """

    host_id: str = ''
    title: str = ''
    nightly_rate: Decimal = Decimal('0')
    currency: str = DEFAULT_CURRENCY
    cleaning_fee: Decimal = Decimal('0')
    service_fee: Decimal = Decimal('0')

    max_guests: int = 1
    min_nights: int = 1
    max_nights: int | None = None

    blocked_dates: frozenset[date] = field(default_factory=frozenset)
    available_from: date | None = None
    available_to: date | None = None

    cancellation_policy: str = DEFAULT_POLICY
    is_active: bool = True

    def __post_init__(self):
        if self.max_guests < 1:
            raise ValueError("max_guests must be at least 1")
        if self.min_nights < 1:
            raise ValueError("min_nights must be at least 1")
        if self.max_nights is not None and self.max_nights < self.min_nights:
            raise ValueError("max_nights cannot be lower than min_nights")

    @classmethod
    def from_row(cls, row: dict) -> 'Listing':
        """Build a listing from a `listings` row."""
        rate = row.get('base_price')
        if rate is None:
            rate = row.get('price_per_night')
        return cls(
            id=row['id'],
            created_at=row_datetime(row.get('created_at')),
            updated_at=row_datetime(row.get('updated_at')),
            host_id=row.get('host_id') or '',
            title=row.get('title') or '',
            nightly_rate=to_decimal(rate),
            currency=(row.get('currency') or DEFAULT_CURRENCY).upper(),
            cleaning_fee=to_decimal(row.get('cleaning_fee')),
            service_fee=to_decimal(row.get('service_fee')),
            max_guests=row.get('max_guests') or 1,
            min_nights=row.get('min_nights') or 1,
            max_nights=row.get('max_nights') or None,
            blocked_dates=frozenset(row_date(value) for value in row.get('blocked_dates') or []),
            available_from=row_date(row.get('available_from')),
            available_to=row_date(row.get('available_to')),
            cancellation_policy=row.get('cancellation_policy') or DEFAULT_POLICY,
            is_active=row.get('is_active', True),
        )

    @property
    def price_per_night(self) -> Money:
        return Money(self.nightly_rate, self.currency)

    def is_blocked(self, day: date) -> bool:
        return day in self.blocked_dates

    def with_blocked_dates(self, *days: date) -> 'Listing':
        """Copy of this listing with extra blocked days"""
        return replace(self, blocked_dates=self.blocked_dates | frozenset(days))

    def __str__(self):
        return f"Listing {self.title or self.id}"
