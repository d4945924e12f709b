"""
Payment processor gateway

Thin wrapper around the Stripe API for the booking flow. Amounts go in and
out as Money; Stripe's minor units never leak past this module. Every
processor failure surfaces as a BookingError so callers only handle one
exception type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import stripe
from django.conf import settings  # type: ignore

from shared.domain.value_objects import Money, round_half_up, to_decimal

from apps.bookings.errors import MISSING_PAYMENT_INFO, BookingError, parse_booking_error

logger = logging.getLogger(__name__)

DEFAULT_FEE_PERCENT = 3
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY"})
REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")


def calculate_application_fee(amount: Money, percent: int | Decimal | None = None) -> Money:
    """Platform share of a charge, rounded to the cent"""
    if percent is None:
        percent = getattr(settings, "PLATFORM_FEE_PERCENT", DEFAULT_FEE_PERCENT)
    fee = round_half_up(amount.amount * to_decimal(percent) / Decimal(100))
    return Money(fee, amount.currency)


def calculate_host_payout(amount: Money, percent: int | Decimal | None = None) -> Money:
    return amount - calculate_application_fee(amount, percent)


def to_minor_units(amount: Money) -> int:
    if amount.currency in ZERO_DECIMAL_CURRENCIES:
        return int(round_half_up(amount.amount, Decimal("1")))
    return int(round_half_up(amount.amount * 100, Decimal("1")))


def from_minor_units(value: int, currency: str) -> Money:
    currency = currency.upper()
    if currency in ZERO_DECIMAL_CURRENCIES:
        return Money(Decimal(value), currency)
    return Money(Decimal(value) / Decimal(100), currency)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    status: str
    amount: Money
    client_secret: str = ""

    @classmethod
    def from_stripe(cls, intent: Any) -> "PaymentIntent":
        currency = intent["currency"]
        return cls(
            id=intent["id"],
            status=intent["status"],
            amount=from_minor_units(intent["amount"], currency),
            client_secret=intent["client_secret"] or "",
        )

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @property
    def requires_action(self) -> bool:
        return self.status in ("requires_action", "requires_confirmation")


@dataclass(frozen=True)
class Refund:
    id: str
    status: str
    amount: Money


class PaymentGateway:
    """Stripe calls used by the booking flow and cancellations."""

    def __init__(self, api_key: str | None = None, currency: str | None = None, fee_percent=None):
        self.api_key = api_key or getattr(settings, "STRIPE_SECRET_KEY", "")
        self.currency = (currency or getattr(settings, "STRIPE_CURRENCY", "usd")).lower()
        self.fee_percent = (
            fee_percent if fee_percent is not None
            else getattr(settings, "PLATFORM_FEE_PERCENT", DEFAULT_FEE_PERCENT)
        )

    def create_payment_intent(
        self,
        *,
        booking_reference: str,
        amount: Money,
        connected_account_id: str | None = None,
        payment_method_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        """
        Create a payment intent for a stay

        When the host has a connected account, the platform fee is taken as
        an application fee and the rest is transferred to the host.
        """
        params: dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": (amount.currency or self.currency).lower(),
            "metadata": {"booking_id": booking_reference, **(metadata or {})},
            "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
        }
        if payment_method_id:
            params["payment_method"] = payment_method_id
        if connected_account_id:
            fee = calculate_application_fee(amount, self.fee_percent)
            params["application_fee_amount"] = to_minor_units(fee)
            params["transfer_data"] = {"destination": connected_account_id}

        logger.info(f"Creating payment intent for {booking_reference}: {amount}")
        intent = self._call(stripe.PaymentIntent.create, **params)
        return PaymentIntent.from_stripe(intent)

    def confirm_payment(self, payment_intent_id: str, payment_method_id: str) -> PaymentIntent:
        if not payment_intent_id or not payment_method_id:
            raise BookingError(MISSING_PAYMENT_INFO)
        logger.info(f"Confirming payment intent {payment_intent_id}")
        intent = self._call(stripe.PaymentIntent.confirm, payment_intent_id, payment_method=payment_method_id)
        return PaymentIntent.from_stripe(intent)

    def get_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        intent = self._call(stripe.PaymentIntent.retrieve, payment_intent_id)
        return PaymentIntent.from_stripe(intent)

    def cancel_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        logger.info(f"Cancelling payment intent {payment_intent_id}")
        intent = self._call(stripe.PaymentIntent.cancel, payment_intent_id)
        return PaymentIntent.from_stripe(intent)

    def process_refund(
        self,
        payment_intent_id: str,
        amount: Money | None = None,
        reason: str = "requested_by_customer",
    ) -> Refund:
        """Refund a charge, in full when no amount is given"""
        if reason not in REFUND_REASONS:
            raise ValueError(f"Unsupported refund reason: {reason}")
        params: dict[str, Any] = {"payment_intent": payment_intent_id, "reason": reason}
        if amount is not None:
            params["amount"] = to_minor_units(amount)

        logger.info(f"Refunding payment intent {payment_intent_id}: {amount or 'full amount'}")
        refund = self._call(stripe.Refund.create, **params)
        return Refund(
            id=refund["id"],
            status=refund["status"],
            amount=from_minor_units(refund["amount"], refund["currency"]),
        )

    def _call(self, method, *args, **kwargs):
        try:
            return method(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe call {getattr(method, '__name__', method)} failed: {e}")
            raise parse_booking_error(e) from e
