"""
Booking errors

Every failure the guest can see is a BookingError with a stable code, a
static user-facing message, a category and a retryable flag. Library
exceptions (hosted store, HTTP transport, payment processor) are normalised
through parse_booking_error().
"""

from __future__ import annotations

from typing import Any

import requests
import stripe

from shared.infrastructure.remote_store import RemoteStoreError

# Validation
INVALID_DATES = "invalid_dates"
INVALID_GUESTS = "invalid_guests"
MISSING_PAYMENT_INFO = "missing_payment_info"

# Availability
DATES_UNAVAILABLE = "dates_unavailable"
PROPERTY_UNAVAILABLE = "property_unavailable"
MAX_GUESTS_EXCEEDED = "max_guests_exceeded"

# Payment
PAYMENT_FAILED = "payment_failed"
PAYMENT_DECLINED = "payment_declined"
INSUFFICIENT_FUNDS = "insufficient_funds"
CARD_EXPIRED = "card_expired"

# Network
NETWORK_ERROR = "network_error"
TIMEOUT = "timeout"

# Authorization
UNAUTHORIZED = "unauthorized"
FORBIDDEN = "forbidden"

# Server
SERVER_ERROR = "server_error"
SERVICE_UNAVAILABLE = "service_unavailable"

# Booking lifecycle
BOOKING_NOT_FOUND = "booking_not_found"
BOOKING_ALREADY_EXISTS = "booking_already_exists"
BOOKING_CANNOT_CANCEL = "booking_cannot_cancel"
CANCELLATION_TOO_LATE = "cancellation_too_late"

UNKNOWN = "unknown"

ERROR_MESSAGES: dict[str, str] = {
    INVALID_DATES: "Please select valid check-in and check-out dates.",
    INVALID_GUESTS: "Please select a valid number of guests.",
    MISSING_PAYMENT_INFO: "Please provide complete payment information.",
    DATES_UNAVAILABLE: "The selected dates are not available. Please choose different dates.",
    PROPERTY_UNAVAILABLE: "This property is no longer available.",
    MAX_GUESTS_EXCEEDED: "The number of guests exceeds the property limit.",
    PAYMENT_FAILED: "Payment could not be processed. Please try again or use a different payment method.",
    PAYMENT_DECLINED: "Your payment was declined. Please check your card details or try a different card.",
    INSUFFICIENT_FUNDS: "Insufficient funds. Please check your account balance or use a different payment method.",
    CARD_EXPIRED: "Your card has expired. Please use a different card.",
    NETWORK_ERROR: "Network connection error. Please check your internet connection and try again.",
    TIMEOUT: "Request timed out. Please try again.",
    UNAUTHORIZED: "You are not authorized to perform this action. Please log in again.",
    FORBIDDEN: "You do not have permission to perform this action.",
    SERVER_ERROR: "A server error occurred. Please try again later.",
    SERVICE_UNAVAILABLE: "Service is temporarily unavailable. Please try again later.",
    BOOKING_NOT_FOUND: "Booking not found.",
    BOOKING_ALREADY_EXISTS: "A booking already exists for these dates.",
    BOOKING_CANNOT_CANCEL: "This booking cannot be cancelled.",
    CANCELLATION_TOO_LATE: "It's too late to cancel this booking.",
}

ERROR_TYPES: dict[str, tuple[str, ...]] = {
    "validation": (INVALID_DATES, INVALID_GUESTS, MISSING_PAYMENT_INFO),
    "availability": (DATES_UNAVAILABLE, PROPERTY_UNAVAILABLE, MAX_GUESTS_EXCEEDED, BOOKING_ALREADY_EXISTS),
    "payment": (PAYMENT_FAILED, PAYMENT_DECLINED, INSUFFICIENT_FUNDS, CARD_EXPIRED),
    "network": (NETWORK_ERROR, TIMEOUT),
    "authorization": (UNAUTHORIZED, FORBIDDEN),
    "server": (SERVER_ERROR, SERVICE_UNAVAILABLE),
}

RETRYABLE_CODES = frozenset({
    NETWORK_ERROR,
    TIMEOUT,
    SERVER_ERROR,
    SERVICE_UNAVAILABLE,
    PAYMENT_FAILED,
})

# Processor decline codes that map onto our own catalogue
CARD_ERROR_CODES = {
    "card_declined": PAYMENT_DECLINED,
    "insufficient_funds": INSUFFICIENT_FUNDS,
    "expired_card": CARD_EXPIRED,
}

# unique_violation, exclusion_violation raised by the store's booking constraints
CONFLICT_SQLSTATES = frozenset({"23505", "23P01"})


def get_error_type(code: str) -> str:
    for error_type, codes in ERROR_TYPES.items():
        if code in codes:
            return error_type
    return "unknown"


def is_retryable(code: str) -> bool:
    return code in RETRYABLE_CODES


class BookingError(Exception):
    """A booking failure with a user-facing message."""

    def __init__(
        self,
        code: str,
        message: str | None = None,
        *,
        type: str | None = None,
        details: Any = None,
        retryable: bool | None = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code) or "An error occurred"
        self.type = type or get_error_type(code)
        self.details = details
        self.retryable = is_retryable(code) if retryable is None else retryable
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "type": self.type,
            "retryable": self.retryable,
        }

    def __repr__(self):
        return f"BookingError({self.code!r}, type={self.type!r}, retryable={self.retryable})"


def _from_http_status(status_code: int | None) -> str | None:
    if status_code is None:
        return None
    if status_code == 401:
        return UNAUTHORIZED
    if status_code == 403:
        return FORBIDDEN
    if status_code == 503:
        return SERVICE_UNAVAILABLE
    if status_code >= 500:
        return SERVER_ERROR
    return None


def parse_booking_error(error: Exception) -> BookingError:
    """Normalise any exception raised during a booking operation."""
    if isinstance(error, BookingError):
        return error

    if isinstance(error, RemoteStoreError):
        if error.code in CONFLICT_SQLSTATES:
            return BookingError(BOOKING_ALREADY_EXISTS, details=error.details)
        code = error.code if error.code in ERROR_MESSAGES else _from_http_status(error.status_code)
        if code is None:
            code = error.code or UNKNOWN
        return BookingError(
            code,
            ERROR_MESSAGES.get(code) or error.message,
            details=error.details,
        )

    if isinstance(error, requests.Timeout):
        return BookingError(TIMEOUT, type="network", retryable=True)

    if isinstance(error, requests.ConnectionError):
        return BookingError(NETWORK_ERROR, type="network", retryable=True)

    if isinstance(error, stripe.APIConnectionError):
        return BookingError(NETWORK_ERROR, type="network", retryable=True, details=str(error))

    if isinstance(error, stripe.CardError):
        stripe_code = getattr(error, "code", None) or "card_declined"
        code = CARD_ERROR_CODES.get(stripe_code, PAYMENT_DECLINED)
        return BookingError(
            code,
            ERROR_MESSAGES.get(code) or getattr(error, "user_message", None),
            type="payment",
            details={"stripe_code": stripe_code},
            retryable=stripe_code != "card_declined",
        )

    if isinstance(error, stripe.StripeError):
        return BookingError(PAYMENT_FAILED, type="payment", details=str(error), retryable=True)

    text = str(error).lower()
    if "timeout" in text or "timed out" in text:
        return BookingError(TIMEOUT, type="network", retryable=True)
    if "network" in text:
        return BookingError(NETWORK_ERROR, type="network", retryable=True)

    return BookingError(
        UNKNOWN,
        str(error) or "An unexpected error occurred",
        type="unknown",
        details=repr(error),
        retryable=True,
    )
