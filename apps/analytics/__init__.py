"""Analytics app package.

On-demand statistics over reservations and key custody. Nothing is
cached; every request aggregates the current rows.
"""
