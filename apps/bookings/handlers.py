"""Message bus subscribers of the booking domain."""

import logging

from shared.application.message_bus import message_bus
from shared.infrastructure.rows import row_datetime
from apps.bookings.domain.events import BookingCreated
from apps.bookings.tasks import schedule_escrow_release

logger = logging.getLogger(__name__)


def on_booking_created(event: BookingCreated):
    check_in = row_datetime(event.check_in)
    if check_in is None:
        logger.warning(f"Booking {event.booking_id} has no check-in, escrow release not scheduled")
        return
    schedule_escrow_release(event.booking_id, check_in)


def register(bus=message_bus):
    bus.register_event_handler(BookingCreated, on_booking_created)
