from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateRange, Money, nights_between, round_half_up, to_decimal
from shared.infrastructure.rows import row_date, row_datetime


def test_money_arithmetic():
    total = Money("600.00", "usd") + Money("70.00", "USD")

    assert total == Money(Decimal("670.00"), "USD")
    assert total.currency == "USD"
    assert (total * Decimal("0.03")).rounded() == Money("20.10", "USD")
    assert str(total) == "$670.00"


def test_money_rejects_bad_values():
    with pytest.raises(ValueError):
        Money("-1", "USD")
    with pytest.raises(ValueError):
        Money("1", "US$")
    with pytest.raises(ValueError):
        Money("1", "USD") + Money("1", "EUR")


def test_subtract_floor_clamps_at_zero():
    assert Money("10.00").subtract_floor(Money("20.10")) == Money("0")


def test_rounding_is_half_up():
    assert round_half_up(Decimal("2.4995")) == Decimal("2.50")
    assert round_half_up(Decimal("0.005")) == Decimal("0.01")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal(1.1) == Decimal("1.1")


def test_date_range():
    stay = DateRange(date(2024, 10, 15), date(2024, 10, 20))

    assert len(stay) == 5
    assert stay.contains(date(2024, 10, 19))
    assert not stay.contains(date(2024, 10, 20))
    assert stay.days()[0] == date(2024, 10, 15)
    assert not stay.overlaps_with(DateRange(date(2024, 10, 20), date(2024, 10, 22)))
    assert stay.overlaps_with(DateRange(date(2024, 10, 19), date(2024, 10, 22)))

    with pytest.raises(ValueError):
        DateRange(date(2024, 10, 20), date(2024, 10, 20))


def test_nights_round_partial_days_up():
    assert nights_between(
        datetime(2024, 10, 15, 12, tzinfo=timezone.utc),
        datetime(2024, 10, 20, 10, tzinfo=timezone.utc),
    ) == 5


def test_row_parsing():
    assert row_date("2024-10-15") == date(2024, 10, 15)
    assert row_date("2024-10-15T14:00:00+00:00") == date(2024, 10, 15)
    assert row_datetime("2024-10-15") == datetime(2024, 10, 15, tzinfo=timezone.utc)
    assert row_datetime(None) is None

    with pytest.raises(ValueError):
        row_date("next tuesday")


def test_any_iso_currency_is_accepted():
    naira = Money("15000", " ngn ")

    assert naira.currency == "NGN"
    assert str(naira) == "15,000.00 NGN"
