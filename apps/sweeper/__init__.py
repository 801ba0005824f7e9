"""Sweeper app package.

Periodically scans reservations and key assignments for elapsed
deadlines. It only sets marker timestamps and emits events; state
changes stay with staff and residents.
"""
