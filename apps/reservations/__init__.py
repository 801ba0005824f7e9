"""Reservations app package.

Booking engine for catalog resources: conflict-free reservations over
half-open time windows, their lifecycle (confirm, check-in, checkout,
cancel, no-show) and the key pickup coupling for keyed rooms.
"""
