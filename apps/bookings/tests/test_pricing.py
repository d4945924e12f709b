from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import Money
from apps.bookings.domain.pricing import calculate_price, format_money


def test_five_night_stay(listing):
    price = calculate_price(listing, date(2024, 10, 15), date(2024, 10, 20))

    assert price.nights == 5
    assert price.base_amount == Money("500.00", "USD")
    assert price.taxes == Money("50.00", "USD")
    assert price.fees == Money("75.00", "USD")
    assert price.total == Money("625.00", "USD")
    assert price.nightly_rate == Money("100.00", "USD")


def test_partial_days_round_up(listing):
    price = calculate_price(
        listing,
        datetime(2024, 10, 15, 12, tzinfo=timezone.utc),
        datetime(2024, 10, 20, 10, tzinfo=timezone.utc),
    )

    assert price.nights == 5


def test_taxes_round_to_cents(make_listing):
    listing = make_listing(nightly_rate=Decimal("33.33"), cleaning_fee=0, service_fee=0)

    price = calculate_price(listing, date(2024, 1, 1), date(2024, 1, 2), tax_rate=Decimal("0.075"))

    assert price.taxes.amount == Decimal("2.50")
    assert price.total.amount == Decimal("35.83")


@pytest.mark.parametrize("check_in, check_out", [
    (None, date(2024, 10, 20)),
    (date(2024, 10, 15), None),
    (date(2024, 10, 15), date(2024, 10, 15)),
    (date(2024, 10, 20), date(2024, 10, 15)),
])
def test_incomplete_selection_has_no_price(listing, check_in, check_out):
    assert calculate_price(listing, check_in, check_out) is None


@pytest.mark.parametrize("nights", [1, 2, 7, 30])
def test_total_is_sum_of_parts(listing, nights):
    check_in = date(2024, 3, 1)
    price = calculate_price(listing, check_in, date.fromordinal(check_in.toordinal() + nights))

    assert price.total == price.base_amount + price.cleaning_fee + price.service_fee + price.taxes
    assert price.base_amount.amount == listing.nightly_rate * nights


def test_to_row_uses_strings(listing):
    row = calculate_price(listing, date(2024, 10, 15), date(2024, 10, 20)).to_row()

    assert row == {
        "nights": 5,
        "base_amount": "500.00",
        "cleaning_fee": "50.00",
        "service_fee": "25.00",
        "taxes": "50.00",
        "total_amount": "625.00",
        "currency": "USD",
    }


def test_format_money():
    assert format_money(Money("1234.5", "USD")) == "$1,234.50"
    assert format_money(Decimal("20000"), "KZT") == "20,000.00 KZT"


def test_listing_in_unlisted_currency(make_listing):
    listing = make_listing(currency="NGN", nightly_rate=Decimal("45000"), cleaning_fee=0, service_fee=0)

    price = calculate_price(listing, date(2030, 10, 15), date(2030, 10, 20))

    assert price.currency == "NGN"
    assert price.total == Money("247500.00", "NGN")
