"""
Booking wizard

Four steps, always in this order:

    dates -> guests -> summary -> payment

A step only advances when its own checks pass; otherwise it stays put and
`error` carries the message to show. Going back is allowed to any earlier
step. The booking row is created only after the payment intent succeeded.
"""

from datetime import date
from enum import Enum
from typing import Optional
import logging

from django.conf import settings  # type: ignore

from apps.bookings.application.command_handlers import CreateBookingCommand
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.pricing import DEFAULT_TAX_RATE, PriceBreakdown, calculate_price
from apps.bookings.errors import (
    MISSING_PAYMENT_INFO,
    PAYMENT_FAILED,
    BookingError,
    parse_booking_error,
)
from apps.bookings.serializers import validate_booking_dates
from apps.listings.domain.availability import check_availability
from apps.listings.domain.entities import Listing

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class FlowStep(Enum):
    DATES = 'dates'
    GUESTS = 'guests'
    SUMMARY = 'summary'
    PAYMENT = 'payment'

    @property
    def number(self) -> int:
        return list(FlowStep).index(self) + 1

    @property
    def title(self) -> str:
        return STEP_TITLES[self]

    @property
    def next_label(self) -> str:
        return NEXT_LABELS[self]


STEP_TITLES = {
    FlowStep.DATES: 'Select Dates',
    FlowStep.GUESTS: 'Number of Guests',
    FlowStep.SUMMARY: 'Booking Summary',
    FlowStep.PAYMENT: 'Payment Details',
}

NEXT_LABELS = {
    FlowStep.DATES: 'Continue to Guests',
    FlowStep.GUESTS: 'Review Booking',
    FlowStep.SUMMARY: 'Continue to Payment',
    FlowStep.PAYMENT: 'Complete Booking',
}

TOTAL_STEPS = len(FlowStep)


class FlowClosedError(Exception):
    """Navigation on a flow that was cancelled or already completed"""


class BookingFlow:
    """
    Guest-side booking wizard for one listing

    Usage:
        flow = BookingFlow(listing, guest_id, gateway=gateway, create_booking=handler)
        flow.set_dates(check_in, check_out)
        flow.next_step()          # -> guests
        flow.set_guests(2)
        flow.next_step()          # -> summary
        flow.next_step()          # -> payment
        flow.submit_payment('pm_card_visa')
    """

    def __init__(
        self,
        listing: Listing,
        guest_id: str,
        *,
        gateway=None,
        create_booking=None,
        tax_rate=None,
        max_retries: Optional[int] = None,
    ):
        self.listing = listing
        self.guest_id = guest_id
        self.gateway = gateway
        self.create_booking = create_booking
        self.tax_rate = tax_rate if tax_rate is not None else getattr(settings, 'BOOKING_TAX_RATE', DEFAULT_TAX_RATE)
        self.max_retries = (
            max_retries if max_retries is not None
            else getattr(settings, 'BOOKING_MAX_RETRIES', DEFAULT_MAX_RETRIES)
        )

        self.step = FlowStep.DATES
        self.check_in: Optional[date] = None
        self.check_out: Optional[date] = None
        self.guests = 1

        self.error: Optional[str] = None
        self.guest_error: Optional[str] = None
        self.retryable = False
        self.retry_count = 0
        self.is_submitting = False

        self.cancelled = False
        self.booking: Optional[Booking] = None
        self._payment_method_id: Optional[str] = None
        self._payment_intent = None
        self._charged_for = None

    # ----- selection -----

    def set_dates(self, check_in: Optional[date], check_out: Optional[date]):
        self._ensure_open()
        if (check_in, check_out) != (self.check_in, self.check_out):
            self._release_payment()
        self.check_in = check_in
        self.check_out = check_out
        self.error = None

    def set_guests(self, guests: int):
        self._ensure_open()
        if guests != self.guests:
            self._release_payment()
        self.guests = guests
        self.guest_error = None

    @property
    def price_breakdown(self) -> Optional[PriceBreakdown]:
        return calculate_price(self.listing, self.check_in, self.check_out, self.tax_rate)

    # ----- presentation -----

    @property
    def title(self) -> str:
        return self.step.title

    @property
    def step_number(self) -> int:
        return self.step.number

    @property
    def progress(self) -> str:
        return f"Step {self.step_number} of {TOTAL_STEPS}"

    @property
    def next_label(self) -> str:
        return self.step.next_label

    @property
    def can_go_back(self) -> bool:
        return self.step != FlowStep.DATES

    @property
    def can_retry(self) -> bool:
        return self.retryable and self.retry_count < self.max_retries

    @property
    def is_complete(self) -> bool:
        return self.booking is not None

    def can_proceed(self) -> bool:
        if self.step == FlowStep.DATES:
            return bool(self.check_in and self.check_out)
        if self.step == FlowStep.GUESTS:
            return 1 <= self.guests <= self.listing.max_guests
        if self.step == FlowStep.PAYMENT:
            # submitted through submit_payment()
            return False
        return True

    # ----- navigation -----

    def next_step(self) -> bool:
        """Advance one step; False when the current step's checks failed"""
        self._ensure_open()
        self.error = None
        self.retryable = False

        if self.step == FlowStep.DATES:
            return self._leave_dates()
        if self.step == FlowStep.GUESTS:
            return self._leave_guests()
        if self.step == FlowStep.SUMMARY:
            self.step = FlowStep.PAYMENT
            return True
        return self.submit_payment(self._payment_method_id)

    def previous_step(self) -> bool:
        self._ensure_open()
        if not self.can_go_back:
            return False
        steps = list(FlowStep)
        self.step = steps[steps.index(self.step) - 1]
        self.error = None
        return True

    def go_to(self, step: FlowStep) -> bool:
        """Jump back to an earlier step, e.g. 'modify dates' from the summary"""
        self._ensure_open()
        if step.number >= self.step.number:
            return False
        self.step = step
        self.error = None
        return True

    def cancel(self):
        self.cancelled = True
        if not self.is_complete:
            self._release_payment()
        logger.info(f"Booking flow for listing {self.listing.id} cancelled by guest {self.guest_id}")

    def _leave_dates(self) -> bool:
        if not self.check_in or not self.check_out:
            self.error = 'Please select both check-in and check-out dates'
            return False

        if not validate_booking_dates(self.check_in, self.check_out):
            self.error = 'Please select valid dates'
            return False

        availability = check_availability(self.listing, self.check_in, self.check_out, self.guests)
        if not availability:
            self.error = availability.message or 'Selected dates are not available'
            return False

        self.step = FlowStep.GUESTS
        return True

    def _leave_guests(self) -> bool:
        if not 1 <= self.guests <= self.listing.max_guests:
            self.guest_error = f"Please select between 1 and {self.listing.max_guests} guests"
            return False
        self.guest_error = None
        self.step = FlowStep.SUMMARY
        return True

    # ----- payment -----

    def submit_payment(self, payment_method_id: Optional[str]) -> bool:
        """
        Charge the guest, then record the booking

        A payment intent that already succeeded is reused while the stay and
        its total are unchanged, so retrying after a failed insert never
        charges twice.
        """
        self._ensure_open()
        if self.step != FlowStep.PAYMENT:
            raise FlowClosedError(f"Payment can only be submitted from the payment step, not {self.step.value}")
        self.error = None
        self.retryable = False
        self._payment_method_id = payment_method_id

        price = self.price_breakdown
        if price is None or not self.check_in or not self.check_out:
            self.error = 'Booking data is incomplete'
            return False

        self.is_submitting = True
        try:
            if not payment_method_id:
                raise BookingError(MISSING_PAYMENT_INFO)
            intent = self._charge(price, payment_method_id)
            self.booking = self.create_booking.handle(CreateBookingCommand(
                listing_id=self.listing.id,
                guest_id=self.guest_id,
                host_id=self.listing.host_id,
                check_in=self.check_in,
                check_out=self.check_out,
                guests=self.guests,
                price=price,
                payment_intent_id=intent.id,
            ))
        except Exception as e:
            error = parse_booking_error(e)
            logger.warning(f"Booking submission failed for listing {self.listing.id}: {error.code}")
            self.error = error.message
            self.retryable = error.type == 'network'
            return False
        finally:
            self.is_submitting = False

        logger.info(f"Booking {self.booking.id} created from flow for guest {self.guest_id}")
        return True

    def _charge(self, price: PriceBreakdown, payment_method_id: str):
        charged_for = (self.check_in, self.check_out, self.guests, price.total)
        if self._payment_intent is not None:
            if self._payment_intent.succeeded and self._charged_for == charged_for:
                return self._payment_intent
            self._release_payment()

        intent = self.gateway.create_payment_intent(
            booking_reference=f"{self.listing.id}:{self.guest_id}:{self.check_in.isoformat()}",
            amount=price.total,
            payment_method_id=payment_method_id,
            metadata={
                'listing_id': self.listing.id,
                'guest_id': self.guest_id,
                'check_in': self.check_in.isoformat(),
                'check_out': self.check_out.isoformat(),
            },
        )
        intent = self.gateway.confirm_payment(intent.id, payment_method_id)
        if not intent.succeeded:
            raise BookingError(PAYMENT_FAILED, details={'status': intent.status})

        self._payment_intent = intent
        self._charged_for = charged_for
        return intent

    def _release_payment(self):
        """Refund or cancel an intent that no longer matches the selection"""
        intent, self._payment_intent, self._charged_for = self._payment_intent, None, None
        if intent is None:
            return
        try:
            if intent.succeeded:
                self.gateway.process_refund(intent.id)
            else:
                self.gateway.cancel_payment_intent(intent.id)
        except Exception as e:
            logger.error(f"Releasing payment intent {intent.id} failed: {e}", exc_info=True)

    def retry(self) -> bool:
        """Repeat the last failed network operation, at most max_retries times"""
        self._ensure_open()
        if not self.can_retry:
            return False
        self.retry_count += 1
        self.error = None
        self.retryable = False

        if self.step == FlowStep.PAYMENT:
            return self.submit_payment(self._payment_method_id)
        return self.next_step()

    def _ensure_open(self):
        if self.cancelled:
            raise FlowClosedError("Booking flow was cancelled")
        if self.booking is not None:
            raise FlowClosedError("Booking flow already completed")
