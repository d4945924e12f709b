"""
Common Value Objects

Value objects used across multiple domains:
- Money: monetary amounts with currency, kept to cents
- DateRange: a stay from check-in (inclusive) to check-out (exclusive)
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject

CENTS = Decimal('0.01')

# ISO 4217 alphabetic code
CURRENCY_CODE = re.compile(r'[A-Z]{3}')

CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'CAD': 'CA$',
    'AUD': 'A$',
    'JPY': '¥',
}


def to_decimal(value) -> Decimal:
    """Convert row values (int, float, str, None) to Decimal"""
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(amount: Decimal, exponent: Decimal = CENTS) -> Decimal:
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Immutable and supports arithmetic operations.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        object.__setattr__(self, 'currency', self.currency.strip().upper())
        if not CURRENCY_CODE.fullmatch(self.currency):
            raise ValueError(f"Invalid currency code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor"""
        if not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * to_decimal(factor), self.currency)

    def __truediv__(self, factor) -> 'Money':
        """Divide money by a factor"""
        if not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only divide Money by number")
        if factor == 0:
            raise ValueError("Cannot divide by zero")
        return Money(self.amount / to_decimal(factor), self.currency)

    def subtract_floor(self, other: 'Money') -> 'Money':
        """Subtract, clamping at zero instead of raising"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(max(self.amount - other.amount, Decimal('0')), self.currency)

    def rounded(self) -> 'Money':
        """Round half-up to cents"""
        return Money(round_half_up(self.amount), self.currency)

    def __str__(self):
        symbol = CURRENCY_SYMBOLS.get(self.currency)
        if symbol:
            return f"{symbol}{self.amount:,.2f}"
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def nights_between(check_in, check_out) -> int:
    """
    Number of nights between two dates or datetimes

    Partial days round up, so 2024-10-15 12:00 -> 2024-10-20 10:00 is 5 nights.
    """
    delta = check_out - check_in
    return math.ceil(delta.total_seconds() / timedelta(days=1).total_seconds())


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for stays, availability checks and blocked-date lookups.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Note: end_date is exclusive, so adjacent ranges don't overlap.
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    def contains(self, check_date: date) -> bool:
        return as_date(self.start_date) <= check_date < as_date(self.end_date)

    def days(self) -> list[date]:
        """Every calendar day a guest sleeps over, one per night"""
        first = as_date(self.start_date)
        return [first + timedelta(days=offset) for offset in range(len(self))]

    def __len__(self) -> int:
        """Number of nights in this range"""
        return nights_between(self.start_date, self.end_date)

    def __str__(self):
        return f"{self.start_date.strftime('%Y-%m-%d')} - {self.end_date.strftime('%Y-%m-%d')}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
