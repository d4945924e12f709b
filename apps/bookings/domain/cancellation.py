"""
Cancellation policies and refund calculation

Policies are a static table keyed by the listing's `cancellation_policy`
id. Each policy is a list of tiers; the tier with the highest day
threshold that the booking still satisfies decides the refund percentage.

The platform fee is never refunded:

    refundable = max(total * percent / 100 - platform_fee, 0)
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money, round_half_up, to_decimal


@dataclass(frozen=True)
class PolicyTier(ValueObject):
    """Refund `refund_percent` when cancelling `threshold_days` or more before check-in"""
    threshold_days: int
    refund_percent: int

    def applies_to(self, days_until_check_in: int) -> bool:
        return days_until_check_in >= self.threshold_days


@dataclass(frozen=True)
class CancellationPolicy(ValueObject):
    id: str
    name: str
    description: str
    tiers: Tuple[PolicyTier, ...] = ()
    conditions: Tuple[str, ...] = ()

    @property
    def refund_percentage(self) -> int:
        """Best refund the policy can give"""
        return max((tier.refund_percent for tier in self.tiers), default=0)

    @property
    def deadline_days(self) -> int:
        """Days before check-in up to which the best refund applies"""
        best = self.refund_percentage
        thresholds = [tier.threshold_days for tier in self.tiers if tier.refund_percent == best]
        return min(thresholds, default=0)

    def refund_percent_for(self, days_until_check_in: int) -> int:
        for tier in sorted(self.tiers, key=lambda tier: tier.threshold_days, reverse=True):
            if tier.applies_to(days_until_check_in):
                return tier.refund_percent
        return 0


CANCELLATION_POLICIES: Dict[str, CancellationPolicy] = {
    'flexible': CancellationPolicy(
        id='flexible',
        name='Flexible',
        description='Full refund up to 24 hours before check-in',
        tiers=(PolicyTier(1, 100), PolicyTier(0, 50)),
        conditions=(
            'Full refund if cancelled 24+ hours before check-in',
            '50% refund if cancelled within 24 hours of check-in',
            'No refund for no-shows',
        ),
    ),
    'moderate': CancellationPolicy(
        id='moderate',
        name='Moderate',
        description='Full refund up to 5 days before check-in',
        tiers=(PolicyTier(5, 100), PolicyTier(1, 50)),
        conditions=(
            'Full refund if cancelled 5+ days before check-in',
            '50% refund if cancelled 1-5 days before check-in',
            'No refund if cancelled within 24 hours of check-in',
        ),
    ),
    'strict': CancellationPolicy(
        id='strict',
        name='Strict',
        description='50% refund up to 7 days before check-in',
        tiers=(PolicyTier(7, 50),),
        conditions=(
            '50% refund if cancelled 7+ days before check-in',
            'No refund if cancelled within 7 days of check-in',
        ),
    ),
    'no_refund': CancellationPolicy(
        id='no_refund',
        name='No Refund',
        description='No refunds for cancellations',
        tiers=(),
        conditions=('No refunds for any cancellations',),
    ),
}

DEFAULT_POLICY_ID = 'flexible'


def get_cancellation_policy(policy_id: str | None) -> CancellationPolicy:
    """Unknown or missing ids fall back to the flexible policy"""
    return CANCELLATION_POLICIES.get(policy_id or DEFAULT_POLICY_ID, CANCELLATION_POLICIES[DEFAULT_POLICY_ID])


def days_until_check_in(check_in, now) -> int:
    """ceil((check_in - now) / 1 day); negative once check-in has passed"""
    if not isinstance(check_in, datetime) and isinstance(now, datetime):
        check_in = datetime(check_in.year, check_in.month, check_in.day, tzinfo=now.tzinfo)
    delta = check_in - now
    return math.ceil(delta.total_seconds() / timedelta(days=1).total_seconds())


@dataclass(frozen=True)
class RefundCalculation(ValueObject):
    original_amount: Money
    refund_percentage: int
    refund_amount: Money
    platform_fee: Money
    host_amount: Money
    refundable_amount: Money
    days_until_check_in: int
    policy: CancellationPolicy = field(compare=False)

    @property
    def is_full_refund(self) -> bool:
        return self.refundable_amount == self.original_amount and self.original_amount.amount > 0

    @property
    def resulting_status(self) -> str:
        """Booking/payment status once this refund goes through"""
        if self.refundable_amount.amount <= 0:
            return 'cancelled'
        if self.is_full_refund:
            return 'refunded'
        return 'partially_refunded'

    def to_dict(self) -> dict:
        return {
            'policy': self.policy.id,
            'days_until_check_in': self.days_until_check_in,
            'original_amount': self.original_amount.amount,
            'refund_percentage': self.refund_percentage,
            'refund_amount': self.refund_amount.amount,
            'platform_fee': self.platform_fee.amount,
            'host_amount': self.host_amount.amount,
            'refundable_amount': self.refundable_amount.amount,
            'currency': self.original_amount.currency,
        }


def calculate_refund(
    policy_id: str | None,
    total: Money,
    check_in,
    now,
    platform_fee: Money | Decimal | None = None,
    host_amount: Money | Decimal | None = None,
) -> RefundCalculation:
    """
    Work out what a guest gets back when cancelling now

    The result never goes below zero, whatever the platform fee.
    """
    policy = get_cancellation_policy(policy_id)
    days = days_until_check_in(check_in, now)
    percent = policy.refund_percent_for(days)

    fee = platform_fee if isinstance(platform_fee, Money) else Money(to_decimal(platform_fee), total.currency)
    host = host_amount if isinstance(host_amount, Money) else Money(to_decimal(host_amount), total.currency)

    refund_amount = Money(round_half_up(total.amount * Decimal(percent) / Decimal(100)), total.currency)
    refundable = refund_amount.subtract_floor(fee)

    return RefundCalculation(
        original_amount=total,
        refund_percentage=percent,
        refund_amount=refund_amount,
        platform_fee=fee,
        host_amount=host,
        refundable_amount=refundable,
        days_until_check_in=days,
        policy=policy,
    )


def list_policies() -> List[CancellationPolicy]:
    return list(CANCELLATION_POLICIES.values())
