"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate the hosted store and the payment processor.

Commands:
- CreateBookingCommand: Insert a booking once its payment succeeded
- CalculateRefundQuery: Estimate the refund for cancelling now
- CancelBookingCommand: Cancel a booking and refund what the policy allows
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable
import logging

from django.utils import timezone  # type: ignore

from shared.application.uow import RemoteUnitOfWork
from shared.domain.value_objects import Money
from shared.infrastructure.rows import isoformat
from apps.bookings.domain.cancellation import RefundCalculation, calculate_refund
from apps.bookings.domain.entities import Booking, BookingRole, BookingStatus
from apps.bookings.domain.events import BookingCreated, RefundIssued
from apps.bookings.domain.pricing import PriceBreakdown
from apps.bookings.errors import (
    BOOKING_CANNOT_CANCEL,
    BOOKING_NOT_FOUND,
    FORBIDDEN,
    BookingError,
    parse_booking_error,
)
from apps.finances.domain.entities import PaymentStatus

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to record a paid booking

    Issued by the booking flow only after the payment intent succeeded.
    """
    listing_id: str
    guest_id: str
    host_id: str
    check_in: date
    check_out: date
    guests: int
    price: PriceBreakdown
    payment_intent_id: str


@dataclass
class CalculateRefundQuery:
    booking_id: str
    now: datetime | None = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: str
    reason: str
    cancelled_by: str  # User who cancelled (guest or host)
    role: BookingRole = BookingRole.GUEST


@dataclass(frozen=True)
class CancellationResult:
    booking_id: str
    status: str
    refund_amount: Money
    refund_id: str | None = None

    def to_dict(self) -> dict:
        return {
            'booking_id': self.booking_id,
            'status': self.status,
            'refund_amount': self.refund_amount.amount,
            'refund_id': self.refund_id,
        }


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    The row is inserted as `pending`; availability is enforced again by the
    store's exclusion constraint, which surfaces as booking_already_exists.
    """

    def __init__(self, booking_repo, uow_factory: Callable = RemoteUnitOfWork):
        self.booking_repo = booking_repo
        self.uow_factory = uow_factory

    def handle(self, command: CreateBookingCommand) -> Booking:
        logger.info(
            f"Creating booking for listing {command.listing_id}, "
            f"guest {command.guest_id}, dates {command.check_in} - {command.check_out}"
        )

        values = {
            'listing_id': command.listing_id,
            'guest_id': command.guest_id,
            'host_id': command.host_id,
            'check_in': isoformat(command.check_in),
            'check_out': isoformat(command.check_out),
            'guests': command.guests,
            'status': BookingStatus.PENDING.value,
            'stripe_payment_intent_id': command.payment_intent_id,
            **command.price.to_row(),
        }

        with self.uow_factory() as uow:
            try:
                booking = self.booking_repo.insert(values)
            except Exception as e:
                raise parse_booking_error(e) from e

            booking.add_event(BookingCreated(
                aggregate_id=booking.id,
                booking_id=booking.id,
                listing_id=booking.listing_id,
                guest_id=booking.guest_id,
                check_in=values['check_in'],
                check_out=values['check_out'],
                total_amount=command.price.total.amount,
                currency=command.price.currency,
                payment_intent_id=command.payment_intent_id,
            ))
            uow.collect_events(booking)

        logger.info(f"Booking created: {booking.id} ({booking.status.value})")
        return booking


class CalculateRefundHandler:
    """Refund estimate for a booking, using its listing's policy and first payment"""

    def __init__(self, booking_repo):
        self.booking_repo = booking_repo

    def handle(self, query: CalculateRefundQuery) -> RefundCalculation:
        booking = self.booking_repo.get(query.booking_id)
        if booking is None:
            raise BookingError(BOOKING_NOT_FOUND, "Booking not found")
        return self.calculate(booking, query.now)

    def calculate(self, booking: Booking, now: datetime | None = None) -> RefundCalculation:
        payment = booking.primary_payment
        if payment is None:
            raise BookingError(BOOKING_NOT_FOUND, "No payment found for booking")

        policy_id = booking.listing.cancellation_policy if booking.listing else None
        return calculate_refund(
            policy_id,
            payment.total,
            booking.check_in,
            now or timezone.now(),
            platform_fee=payment.fee,
            host_amount=Money(payment.host_amount, payment.currency),
        )


class CancelBookingHandler:
    """
    Handler for cancelling booking

    Steps: permission, status, refund estimate, booking row update, refund
    through the processor, payment status, escrow, event. A failed refund is
    logged and does not undo the cancellation.
    """

    def __init__(self, booking_repo, payment_repo, escrow_repo, gateway, uow_factory: Callable = RemoteUnitOfWork):
        self.booking_repo = booking_repo
        self.payment_repo = payment_repo
        self.escrow_repo = escrow_repo
        self.gateway = gateway
        self.uow_factory = uow_factory
        self.refunds = CalculateRefundHandler(booking_repo)

    def handle(self, command: CancelBookingCommand) -> CancellationResult:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")

        booking = self.booking_repo.get(command.booking_id)
        if booking is None:
            raise BookingError(BOOKING_NOT_FOUND, "Booking not found")

        owner_id = booking.guest_id if command.role == BookingRole.GUEST else booking.host_id
        if owner_id != command.cancelled_by:
            raise BookingError(FORBIDDEN, f"Only the {command.role.value} can cancel this booking")

        if not booking.can_be_cancelled():
            raise BookingError(BOOKING_CANNOT_CANCEL, "Booking cannot be cancelled")

        now = timezone.now()
        refund = self.refunds.calculate(booking, now)
        refundable = refund.refundable_amount

        with self.uow_factory() as uow:
            values = booking.record_cancellation(
                reason=command.reason,
                cancelled_by=command.cancelled_by,
                role=command.role,
                refundable_amount=refundable.amount,
                cancelled_at=now,
            )
            try:
                self.booking_repo.update(booking.id, values)
            except Exception as e:
                raise parse_booking_error(e) from e

            refund_id = self._refund(booking, refundable)

            self._release_escrow(booking)

            uow.collect_events(booking)

        logger.info(f"Booking {booking.id} cancelled, refundable {refundable}")
        return CancellationResult(
            booking_id=booking.id,
            status=booking.status.value,
            refund_amount=refundable,
            refund_id=refund_id,
        )

    def _release_escrow(self, booking: Booking):
        if not booking.escrow_id:
            return
        try:
            self.escrow_repo.mark_released(booking.escrow_id)
        except Exception as e:
            logger.error(f"Escrow release failed for booking {booking.id}: {e}", exc_info=True)

    def _refund(self, booking: Booking, refundable: Money) -> str | None:
        payment = booking.primary_payment
        if refundable.amount <= 0 or payment is None:
            return None

        try:
            refund = self.gateway.process_refund(
                payment.stripe_payment_intent_id or booking.stripe_payment_intent_id,
                refundable,
                'requested_by_customer',
            )
            status = (
                PaymentStatus.REFUNDED if refundable == payment.total
                else PaymentStatus.PARTIALLY_REFUNDED
            )
            self.payment_repo.mark_refunded(payment.id, status)
        except Exception as e:
            logger.error(f"Refund processing failed for booking {booking.id}: {e}", exc_info=True)
            return None

        booking.add_event(RefundIssued(
            aggregate_id=booking.id,
            booking_id=booking.id,
            payment_id=payment.id,
            refund_id=refund.id,
            amount=refundable.amount,
            currency=refundable.currency,
        ))
        return refund.id
