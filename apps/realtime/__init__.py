"""Realtime app package.

Row changes of the hosted database (bookings, payments, escrow) arrive
through a database webhook, travel over the message bus as RowChanged
events and are fanned out by the RealtimeHub to every subscription whose
table and filter match. Each subscription keeps its own mirror of the rows
it watches; there is no ordering across subscriptions.
"""
