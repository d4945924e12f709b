import pytest
import requests
import stripe

from shared.infrastructure.remote_store import RemoteStoreError
from apps.bookings.errors import (
    ERROR_MESSAGES,
    BookingError,
    get_error_type,
    is_retryable,
    parse_booking_error,
)


@pytest.mark.parametrize("code, error_type", [
    ("invalid_dates", "validation"),
    ("dates_unavailable", "availability"),
    ("card_expired", "payment"),
    ("timeout", "network"),
    ("forbidden", "authorization"),
    ("service_unavailable", "server"),
    ("booking_not_found", "unknown"),
])
def test_error_types(code, error_type):
    assert get_error_type(code) == error_type


def test_retryable_codes():
    assert {code for code in ERROR_MESSAGES if is_retryable(code)} == {
        "network_error", "timeout", "server_error", "service_unavailable", "payment_failed",
    }


def test_booking_error_defaults():
    error = BookingError("dates_unavailable")

    assert error.message == "The selected dates are not available. Please choose different dates."
    assert error.type == "availability"
    assert error.retryable is False
    assert error.to_dict() == {
        "code": "dates_unavailable",
        "message": error.message,
        "type": "availability",
        "retryable": False,
    }


def test_booking_error_passes_through():
    error = BookingError("forbidden")

    assert parse_booking_error(error) is error


def test_overlapping_booking_conflict():
    error = parse_booking_error(RemoteStoreError("conflicting key value", code="23P01", status_code=409))

    assert error.code == "booking_already_exists"
    assert error.type == "availability"


@pytest.mark.parametrize("status_code, code", [(401, "unauthorized"), (403, "forbidden"), (500, "server_error"), (503, "service_unavailable")])
def test_remote_store_http_status(status_code, code):
    error = parse_booking_error(RemoteStoreError("boom", status_code=status_code))

    assert error.code == code


def test_transport_errors_are_network():
    timeout = parse_booking_error(requests.Timeout("read timed out"))
    offline = parse_booking_error(requests.ConnectionError("connection refused"))

    assert (timeout.code, timeout.type, timeout.retryable) == ("timeout", "network", True)
    assert (offline.code, offline.type, offline.retryable) == ("network_error", "network", True)


def test_card_errors():
    declined = parse_booking_error(stripe.CardError("Your card was declined.", None, "card_declined"))
    broke = parse_booking_error(stripe.CardError("Insufficient funds.", None, "insufficient_funds"))
    expired = parse_booking_error(stripe.CardError("Expired.", None, "expired_card"))

    assert (declined.code, declined.retryable) == ("payment_declined", False)
    assert (broke.code, broke.retryable) == ("insufficient_funds", True)
    assert expired.code == "card_expired"


def test_processor_connection_error():
    error = parse_booking_error(stripe.APIConnectionError("could not connect"))

    assert (error.code, error.type) == ("network_error", "network")


def test_other_processor_errors_are_payment_failed():
    error = parse_booking_error(stripe.InvalidRequestError("bad amount", "amount"))

    assert (error.code, error.type, error.retryable) == ("payment_failed", "payment", True)


def test_message_sniffing_and_unknown():
    assert parse_booking_error(RuntimeError("gateway timeout while booking")).code == "timeout"
    assert parse_booking_error(RuntimeError("network unreachable")).code == "network_error"

    unknown = parse_booking_error(RuntimeError("something odd"))
    assert (unknown.code, unknown.message, unknown.type) == ("unknown", "something odd", "unknown")
