"""
Notification event handlers

Subscribed to the message bus at startup. Each handler builds the
message for one event type and hands delivery to Celery.
"""

from __future__ import annotations

import logging

from apps.keys.domain.events import KeyOverdue, KeyReportedLost
from apps.reservations.domain.events import (
    ReservationConfirmed,
    ReservationNoShowDetected,
    ReservationOverdue,
)

from . import services
from .tasks import send_user_notification

logger = logging.getLogger(__name__)


def _notify(event, build_message) -> None:
    subject, message = build_message(event)
    send_user_notification.delay(event.user_id, subject, message)
    logger.info(f"Queued '{event.name}' notification for user {event.user_id}")


def on_reservation_confirmed(event: ReservationConfirmed) -> None:
    _notify(event, services.reservation_confirmed_message)


def on_reservation_overdue(event: ReservationOverdue) -> None:
    _notify(event, services.reservation_overdue_message)


def on_reservation_no_show(event: ReservationNoShowDetected) -> None:
    _notify(event, services.reservation_no_show_message)


def on_key_overdue(event: KeyOverdue) -> None:
    _notify(event, services.key_overdue_message)


def on_key_lost(event: KeyReportedLost) -> None:
    _notify(event, services.key_lost_message)


EVENT_HANDLERS = {
    ReservationConfirmed: on_reservation_confirmed,
    ReservationOverdue: on_reservation_overdue,
    ReservationNoShowDetected: on_reservation_no_show,
    KeyOverdue: on_key_overdue,
    KeyReportedLost: on_key_lost,
}


def register_event_handlers(bus) -> None:
    for event_type, handler in EVENT_HANDLERS.items():
        bus.register_event_handler(event_type, handler)
