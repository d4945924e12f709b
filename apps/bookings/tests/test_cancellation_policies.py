from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import Money
from apps.bookings.domain.cancellation import (
    calculate_refund,
    days_until_check_in,
    get_cancellation_policy,
    list_policies,
)

NOW = datetime(2024, 10, 5, 12, tzinfo=timezone.utc)


def usd(amount):
    return Money(Decimal(amount), "USD")


def test_flexible_ten_days_out():
    refund = calculate_refund(
        "flexible",
        usd("670.00"),
        NOW + timedelta(days=10),
        NOW,
        platform_fee=usd("20.10"),
        host_amount=usd("649.90"),
    )

    assert refund.days_until_check_in == 10
    assert refund.refund_percentage == 100
    assert refund.refund_amount == usd("670.00")
    assert refund.refundable_amount == usd("649.90")
    assert refund.resulting_status == "partially_refunded"


@pytest.mark.parametrize("policy, days, percent", [
    ("flexible", 1, 100),
    ("flexible", 0, 50),
    ("flexible", -1, 0),
    ("moderate", 5, 100),
    ("moderate", 4, 50),
    ("moderate", 1, 50),
    ("moderate", 0, 0),
    ("strict", 7, 50),
    ("strict", 6, 0),
    ("no_refund", 30, 0),
])
def test_policy_tiers(policy, days, percent):
    refund = calculate_refund(policy, usd("100.00"), NOW + timedelta(days=days), NOW)

    assert refund.refund_percentage == percent


def test_partial_day_counts_as_a_day():
    assert days_until_check_in(NOW + timedelta(hours=3), NOW) == 1
    assert days_until_check_in(NOW - timedelta(hours=3), NOW) == 0


def test_date_check_in_is_read_at_midnight():
    assert days_until_check_in(datetime(2024, 10, 8).date(), NOW) == 3


def test_refundable_never_negative():
    refund = calculate_refund("strict", usd("10.00"), NOW + timedelta(days=8), NOW, platform_fee=usd("9.00"))

    assert refund.refund_amount == usd("5.00")
    assert refund.refundable_amount == usd("0")
    assert refund.resulting_status == "cancelled"


def test_full_refund_without_fee():
    refund = calculate_refund("moderate", usd("300.00"), NOW + timedelta(days=6), NOW)

    assert refund.is_full_refund
    assert refund.resulting_status == "refunded"


def test_unknown_policy_falls_back_to_flexible():
    assert get_cancellation_policy("nonexistent").id == "flexible"
    assert get_cancellation_policy(None).id == "flexible"


def test_policy_summary_values():
    by_id = {policy.id: policy for policy in list_policies()}

    assert (by_id["flexible"].refund_percentage, by_id["flexible"].deadline_days) == (100, 1)
    assert (by_id["moderate"].refund_percentage, by_id["moderate"].deadline_days) == (100, 5)
    assert (by_id["strict"].refund_percentage, by_id["strict"].deadline_days) == (50, 7)
    assert (by_id["no_refund"].refund_percentage, by_id["no_refund"].deadline_days) == (0, 0)


@pytest.mark.parametrize("policy", ["flexible", "moderate", "strict", "no_refund"])
def test_refund_does_not_grow_closer_to_check_in(policy):
    percents = [
        calculate_refund(policy, usd("100.00"), NOW + timedelta(days=days), NOW).refund_percentage
        for days in range(10, -3, -1)
    ]

    assert percents == sorted(percents, reverse=True)
