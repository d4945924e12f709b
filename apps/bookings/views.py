"""API views for the booking domain."""

from __future__ import annotations

import structlog
from django.conf import settings  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.infrastructure.remote_store import RemoteStoreClient
from apps.finances.gateway import PaymentGateway
from apps.finances.repository import EscrowRepository, PaymentRepository
from apps.listings.domain.availability import check_availability
from apps.listings.repository import ListingRepository

from .application.command_handlers import (
    CalculateRefundHandler,
    CalculateRefundQuery,
    CancelBookingCommand,
    CancelBookingHandler,
)
from .domain.entities import BookingRole
from .domain.pricing import DEFAULT_TAX_RATE, calculate_price
from .errors import BOOKING_NOT_FOUND, FORBIDDEN, PROPERTY_UNAVAILABLE, BookingError, parse_booking_error
from .repository import BookingRepository
from .serializers import (
    AvailabilitySerializer,
    CancelBookingSerializer,
    CancellationResultSerializer,
    PriceBreakdownSerializer,
    QuoteRequestSerializer,
    RefundCalculationSerializer,
    first_error,
)

logger = structlog.get_logger(__name__)

STATUS_BY_CODE = {
    BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    PROPERTY_UNAVAILABLE: status.HTTP_404_NOT_FOUND,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    FORBIDDEN: status.HTTP_403_FORBIDDEN,
    "booking_cannot_cancel": status.HTTP_409_CONFLICT,
    "cancellation_too_late": status.HTTP_409_CONFLICT,
    "service_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}

STATUS_BY_TYPE = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "availability": status.HTTP_409_CONFLICT,
    "payment": status.HTTP_402_PAYMENT_REQUIRED,
    "network": status.HTTP_503_SERVICE_UNAVAILABLE,
    "authorization": status.HTTP_403_FORBIDDEN,
    "server": status.HTTP_502_BAD_GATEWAY,
}


def error_response(error: BookingError) -> Response:
    http_status = STATUS_BY_CODE.get(error.code) or STATUS_BY_TYPE.get(error.type, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({"error": error.to_dict()}, status=http_status)


class BookingViewSet(viewsets.ViewSet):
    """Quotes, refund estimates and cancellations for hosted bookings."""

    permission_classes = [permissions.IsAuthenticated]

    def get_store(self) -> RemoteStoreClient:
        return RemoteStoreClient().with_token(self.request.auth)

    def get_gateway(self) -> PaymentGateway:
        return PaymentGateway()

    @action(detail=False, methods=["post"])
    def quote(self, request):  # type: ignore
        serializer = QuoteRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": BookingError("invalid_dates", first_error(serializer)).to_dict(), "fields": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data

        try:
            listing = ListingRepository(self.get_store()).get_active(data["listing_id"])
        except Exception as e:
            return error_response(parse_booking_error(e))
        if listing is None:
            return error_response(BookingError(PROPERTY_UNAVAILABLE))

        availability = check_availability(listing, data["check_in"], data["check_out"], data["guests"])
        tax_rate = getattr(settings, "BOOKING_TAX_RATE", DEFAULT_TAX_RATE)
        price = calculate_price(listing, data["check_in"], data["check_out"], tax_rate)

        logger.info(
            "bookings.quote",
            listing_id=listing.id,
            available=availability.is_available,
            nights=price.nights if price else 0,
        )
        return Response({
            "listing_id": listing.id,
            "availability": AvailabilitySerializer(availability).data,
            "price": PriceBreakdownSerializer(price.to_dict()).data if price else None,
        })

    @action(detail=True, methods=["get"], url_path="refund-quote")
    def refund_quote(self, request, pk=None):  # type: ignore
        try:
            refund = CalculateRefundHandler(BookingRepository(self.get_store())).handle(
                CalculateRefundQuery(booking_id=pk)
            )
        except Exception as e:
            return error_response(parse_booking_error(e))
        return Response(RefundCalculationSerializer(refund.to_dict()).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = self.get_store()
        handler = CancelBookingHandler(
            BookingRepository(store),
            PaymentRepository(store),
            EscrowRepository(store),
            self.get_gateway(),
        )
        command = CancelBookingCommand(
            booking_id=pk,
            reason=serializer.validated_data["reason"],
            cancelled_by=str(request.user.id),
            role=BookingRole(serializer.validated_data["role"]),
        )
        try:
            result = handler.handle(command)
        except Exception as e:
            error = parse_booking_error(e)
            logger.warning("bookings.cancel.failed", booking_id=pk, code=error.code)
            return error_response(error)

        logger.info("bookings.cancel.ok", booking_id=pk, refund=str(result.refund_amount.amount))
        return Response(CancellationResultSerializer(result.to_dict()).data, status=status.HTTP_200_OK)
