"""
Availability rules

Synchronous evaluation of a stay request against a listing already loaded
into memory. Checks run in a fixed order and the first failure wins:

1. guest count against capacity
2. minimum nights
3. maximum nights (when the listing sets one)
4. blocked days inside [check_in, check_out)
5. check-in not before available_from (when set)
6. check-out not after available_to (when set)
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List

from shared.domain.value_objects import DateRange, as_date, nights_between

from apps.listings.domain.entities import Listing


class AvailabilityReason(Enum):
    MAX_GUESTS_EXCEEDED = 'max_guests_exceeded'
    MIN_NIGHTS = 'min_nights'
    MAX_NIGHTS = 'max_nights'
    DATES_UNAVAILABLE = 'dates_unavailable'
    BEFORE_AVAILABLE_FROM = 'before_available_from'
    AFTER_AVAILABLE_TO = 'after_available_to'

    @property
    def error_code(self) -> str:
        """Booking error code shown to the guest for this reason"""
        if self is AvailabilityReason.MAX_GUESTS_EXCEEDED:
            return 'max_guests_exceeded'
        if self in (AvailabilityReason.MIN_NIGHTS, AvailabilityReason.MAX_NIGHTS):
            return 'invalid_dates'
        if self is AvailabilityReason.DATES_UNAVAILABLE:
            return 'dates_unavailable'
        return 'property_unavailable'


@dataclass(frozen=True)
class AvailabilityResult:
    is_available: bool
    reason: AvailabilityReason | None = None
    message: str = ''
    conflicting_dates: List[date] = field(default_factory=list)

    @classmethod
    def available(cls) -> 'AvailabilityResult':
        return cls(is_available=True)

    @classmethod
    def rejected(cls, reason: AvailabilityReason, message: str, conflicting_dates=None) -> 'AvailabilityResult':
        return cls(
            is_available=False,
            reason=reason,
            message=message,
            conflicting_dates=list(conflicting_dates or []),
        )

    def __bool__(self):
        return self.is_available


def check_availability(listing: Listing, check_in, check_out, guests: int) -> AvailabilityResult:
    """
    Evaluate a stay request against a listing

    check_in/check_out may be dates or datetimes (both of the same kind).
    Raises ValueError when check_out is not after check_in; that is a form
    error, not an availability answer.
    """
    if guests > listing.max_guests:
        return AvailabilityResult.rejected(
            AvailabilityReason.MAX_GUESTS_EXCEEDED,
            f"Maximum {listing.max_guests} guests allowed",
        )

    stay = DateRange(check_in, check_out)
    nights = nights_between(check_in, check_out)

    if nights < listing.min_nights:
        return AvailabilityResult.rejected(
            AvailabilityReason.MIN_NIGHTS,
            f"Minimum {listing.min_nights} nights required",
        )

    if listing.max_nights and nights > listing.max_nights:
        return AvailabilityResult.rejected(
            AvailabilityReason.MAX_NIGHTS,
            f"Maximum {listing.max_nights} nights allowed",
        )

    conflicting = [day for day in stay.days() if listing.is_blocked(day)]
    if conflicting:
        return AvailabilityResult.rejected(
            AvailabilityReason.DATES_UNAVAILABLE,
            "Selected dates are not available",
            conflicting,
        )

    if listing.available_from and as_date(check_in) < listing.available_from:
        return AvailabilityResult.rejected(
            AvailabilityReason.BEFORE_AVAILABLE_FROM,
            f"Property is not available until {listing.available_from:%b %d, %Y}",
        )

    if listing.available_to and as_date(check_out) > listing.available_to:
        return AvailabilityResult.rejected(
            AvailabilityReason.AFTER_AVAILABLE_TO,
            f"Property is not available after {listing.available_to:%b %d, %Y}",
        )

    return AvailabilityResult.available()
