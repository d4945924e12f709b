"""Endpoint tests for booking quotes, refund estimates and cancellations."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APISimpleTestCase

from shared.domain.value_objects import Money
from shared.infrastructure.remote_store import RemoteStoreError
from apps.bookings.domain.entities import Booking
from apps.finances.gateway import Refund
from apps.listings.domain.entities import Listing
from apps.users.domain.entities import AuthUser


def stay(days_ahead: int = 30, nights: int = 5) -> tuple[date, date]:
    check_in = date.today() + timedelta(days=days_ahead)
    return check_in, check_in + timedelta(days=nights)


def paid_booking(**overrides) -> Booking:
    check_in = timezone.now() + timedelta(days=10)
    row = {
        "id": "booking-1",
        "listing_id": "listing-1",
        "guest_id": "guest-1",
        "host_id": "host-1",
        "check_in": check_in.isoformat(),
        "check_out": (check_in + timedelta(days=5)).isoformat(),
        "status": "confirmed",
        "total_amount": "670.00",
        "listing": {"id": "listing-1", "host_id": "host-1", "cancellation_policy": "flexible"},
        "payments": [{
            "id": "payment-1",
            "booking_id": "booking-1",
            "amount": "670.00",
            "platform_fee": "20.10",
            "host_amount": "649.90",
            "status": "succeeded",
            "stripe_payment_intent_id": "pi_123",
        }],
    }
    row.update(overrides)
    return Booking.from_row(row)


class BookingAPITests(APISimpleTestCase):
    """Covers quotes, refund estimates and cancellation through the API."""

    def setUp(self) -> None:
        self.guest = AuthUser(id="guest-1", email="guest@example.com")
        self.client.force_authenticate(user=self.guest, token="access-token")

        patcher = mock.patch("apps.bookings.views.RemoteStoreClient")
        self.store_class = patcher.start()
        self.addCleanup(patcher.stop)

        self.listing = Listing(
            id="listing-1",
            host_id="host-1",
            nightly_rate=Decimal("100.00"),
            cleaning_fee=Decimal("50.00"),
            service_fee=Decimal("25.00"),
            max_guests=4,
        )

    def _patch(self, target: str):
        patcher = mock.patch(f"apps.bookings.views.{target}")
        patched = patcher.start()
        self.addCleanup(patcher.stop)
        return patched.return_value

    def test_quote_returns_price_and_availability(self) -> None:
        self._patch("ListingRepository").get_active.return_value = self.listing
        check_in, check_out = stay()

        response = self.client.post(
            reverse("booking-quote"),
            {"listing_id": "listing-1", "check_in": str(check_in), "check_out": str(check_out), "guests": 2},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["availability"]["is_available"])
        self.assertEqual(response.data["price"]["nights"], 5)
        self.assertEqual(response.data["price"]["total"], "625.00")
        self.store_class.return_value.with_token.assert_called_once_with("access-token")

    def test_quote_reports_capacity(self) -> None:
        self._patch("ListingRepository").get_active.return_value = self.listing
        check_in, check_out = stay()

        response = self.client.post(
            reverse("booking-quote"),
            {"listing_id": "listing-1", "check_in": str(check_in), "check_out": str(check_out), "guests": 6},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["availability"]["is_available"])
        self.assertEqual(response.data["availability"]["reason"], "max_guests_exceeded")

    def test_quote_rejects_invalid_dates(self) -> None:
        check_in, _ = stay()

        response = self.client.post(
            reverse("booking-quote"),
            {"listing_id": "listing-1", "check_in": str(check_in), "check_out": str(check_in)},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_dates")
        self.assertEqual(response.data["error"]["message"], "Check-out date must be after check-in date")

    def test_quote_for_inactive_listing(self) -> None:
        self._patch("ListingRepository").get_active.return_value = None
        check_in, check_out = stay()

        response = self.client.post(
            reverse("booking-quote"),
            {"listing_id": "listing-1", "check_in": str(check_in), "check_out": str(check_out)},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "property_unavailable")

    def test_refund_quote(self) -> None:
        self._patch("BookingRepository").get.return_value = paid_booking()

        response = self.client.get(reverse("booking-refund-quote", args=["booking-1"]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["policy"], "flexible")
        self.assertEqual(response.data["refund_percentage"], 100)
        self.assertEqual(response.data["refundable_amount"], "649.90")

    def test_refund_quote_missing_booking(self) -> None:
        self._patch("BookingRepository").get.return_value = None

        response = self.client.get(reverse("booking-refund-quote", args=["missing"]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["message"], "Booking not found")

    def test_guest_can_cancel(self) -> None:
        repo = self._patch("BookingRepository")
        repo.get.return_value = paid_booking()
        self._patch("PaymentRepository")
        self._patch("EscrowRepository")
        gateway = self._patch("PaymentGateway")
        gateway.process_refund.return_value = Refund(id="re_1", status="succeeded", amount=Money("649.90"))

        response = self.client.post(
            reverse("booking-cancel", args=["booking-1"]),
            {"reason": "Change of plans"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["refund_amount"], "649.90")
        self.assertEqual(response.data["refund_id"], "re_1")
        repo.update.assert_called_once()

    def test_other_users_cannot_cancel(self) -> None:
        self._patch("BookingRepository").get.return_value = paid_booking(guest_id="guest-2")
        self._patch("PaymentRepository")
        self._patch("EscrowRepository")
        self._patch("PaymentGateway")

        response = self.client.post(reverse("booking-cancel", args=["booking-1"]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["code"], "forbidden")

    def test_cancel_closed_booking_conflicts(self) -> None:
        self._patch("BookingRepository").get.return_value = paid_booking(status="completed")
        self._patch("PaymentRepository")
        self._patch("EscrowRepository")
        self._patch("PaymentGateway")

        response = self.client.post(reverse("booking-cancel", args=["booking-1"]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_store_outage_maps_to_service_unavailable(self) -> None:
        self._patch("BookingRepository").get.side_effect = RemoteStoreError("down", status_code=503)

        response = self.client.get(reverse("booking-refund-quote", args=["booking-1"]))

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertTrue(response.data["error"]["retryable"])

    def test_requires_authentication(self) -> None:
        self.client.force_authenticate(user=None)

        response = self.client.get(reverse("booking-refund-quote", args=["booking-1"]))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
