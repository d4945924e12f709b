"""Finances app package.

This app contains the payment and escrow mirrors and the gateway to the
payment processor (Stripe). Payments are authoritative in the processor
and the hosted database; the app only creates, confirms and refunds them.
"""
