"""Bookings app package.

This app encapsulates the booking domain: pricing, availability-driven
booking flow, cancellation policies and refunds. Booking rows live in the
hosted database; the app mirrors them, places new bookings after payment
and requests cancellations and escrow releases.
"""
