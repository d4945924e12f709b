"""
Price calculation

A PriceBreakdown is derived, ephemeral and never persisted by the app: it
is recomputed whenever the selected dates change.

    nights = ceil((check_out - check_in) / 1 day)
    base   = nightly_rate * nights
    taxes  = round(base * tax_rate, 2)
    total  = base + cleaning_fee + service_fee + taxes
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money, nights_between, round_half_up, to_decimal

from apps.listings.domain.entities import Listing

# Flat rate applied client-side; the hosted backend does not send one.
DEFAULT_TAX_RATE = Decimal('0.10')


@dataclass(frozen=True)
class PriceBreakdown(ValueObject):
    base_amount: Money
    nights: int
    cleaning_fee: Money
    service_fee: Money
    taxes: Money
    total: Money

    @property
    def currency(self) -> str:
        return self.total.currency

    @property
    def fees(self) -> Money:
        return self.cleaning_fee + self.service_fee

    @property
    def nightly_rate(self) -> Money:
        return self.base_amount / self.nights

    def to_row(self) -> dict:
        """Price columns of a `bookings` row"""
        return {
            'nights': self.nights,
            'base_amount': str(self.base_amount.amount),
            'cleaning_fee': str(self.cleaning_fee.amount),
            'service_fee': str(self.service_fee.amount),
            'taxes': str(self.taxes.amount),
            'total_amount': str(self.total.amount),
            'currency': self.currency,
        }

    def to_dict(self) -> dict:
        return {
            'base_amount': self.base_amount.amount,
            'nights': self.nights,
            'cleaning_fee': self.cleaning_fee.amount,
            'service_fee': self.service_fee.amount,
            'taxes': self.taxes.amount,
            'total': self.total.amount,
            'currency': self.currency,
        }


def calculate_price(
    listing: Listing,
    check_in,
    check_out,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
) -> PriceBreakdown | None:
    """
    Price a stay at a listing

    Returns None while either date is missing or the range has no nights,
    which is the normal state of a half-filled date picker.
    """
    if listing is None or check_in is None or check_out is None:
        return None

    nights = nights_between(check_in, check_out)
    if nights <= 0:
        return None

    currency = listing.currency
    base_amount = Money(listing.nightly_rate * nights, currency)
    cleaning_fee = Money(listing.cleaning_fee, currency)
    service_fee = Money(listing.service_fee, currency)
    taxes = Money(round_half_up(base_amount.amount * to_decimal(tax_rate)), currency)

    return PriceBreakdown(
        base_amount=base_amount,
        nights=nights,
        cleaning_fee=cleaning_fee,
        service_fee=service_fee,
        taxes=taxes,
        total=base_amount + cleaning_fee + service_fee + taxes,
    )


def format_money(amount, currency: str = 'USD') -> str:
    """Display form of an amount, e.g. `$1,234.50` or `1,234.50 KZT`"""
    money = amount if isinstance(amount, Money) else Money(to_decimal(amount), currency)
    return str(money)
