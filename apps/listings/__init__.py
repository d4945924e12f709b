"""Listings app package.

Listings are owned by the hosted database. This app mirrors the fields the
booking flow needs (pricing, capacity, stay limits, blocked dates) and
evaluates availability rules locally against them.
"""
