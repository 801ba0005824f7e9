"""Notifications app package.

Turns allocation events (confirmations, overdue reservations, no-show
candidates, overdue and lost keys) into e-mails for the affected user.
Delivery runs in Celery so a slow mail server never holds up a request.
"""
