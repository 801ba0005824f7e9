"""
Overdue Sweeper

Finds checked-in reservations past their end, confirmed reservations
nobody showed up for, and key assignments past their expected return.
Every hit is flagged once (a ``*_flagged_at`` marker) and reported
through a domain event. Nothing is cancelled, returned or transitioned.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.utils import timezone  # type: ignore

from shared.application.uow import DjangoUnitOfWork
from shared.infrastructure.config import allocation_setting
from apps.keys.models import KeyAssignment
from apps.reservations.domain.status import ReservationStatus
from apps.reservations.models import Reservation

logger = logging.getLogger(__name__)


class OverdueSweeper:
    """Runs the three deadline scans. Each scan commits on its own."""

    def run(self, now=None) -> dict[str, int]:
        now = now or timezone.now()
        grace = timedelta(minutes=int(allocation_setting("NO_SHOW_GRACE_MINUTES")))
        result = {
            "overdue_reservations": self._scan("overdue_reservations", self._flag_overdue_reservations, now),
            "no_show_candidates": self._scan("no_show_candidates", self._flag_no_shows, now, grace),
            "overdue_keys": self._scan("overdue_keys", self._flag_overdue_keys, now),
        }
        if any(result.values()):
            logger.info(f"Overdue sweep flagged {result}")
        return result

    def _scan(self, label: str, scan, *args) -> int:
        try:
            return scan(*args)
        except Exception as e:
            logger.error(f"Overdue sweep step {label} failed: {e}", exc_info=True)
            return 0

    def _flag_overdue_reservations(self, now) -> int:
        with DjangoUnitOfWork() as uow:
            candidates = (
                Reservation.objects.select_for_update()
                .overdue(now)
                .filter(overdue_flagged_at__isnull=True)
            )
            flagged = 0
            for reservation in candidates:
                reservation.flag_overdue(now)
                reservation.save(update_fields=["overdue_flagged_at", "updated_at"])
                uow.collect_events(reservation)
                flagged += 1
                logger.info(f"Reservation {reservation.pk} overdue since {reservation.end_time.isoformat()}")
        return flagged

    def _flag_no_shows(self, now, grace: timedelta) -> int:
        with DjangoUnitOfWork() as uow:
            candidates = Reservation.objects.select_for_update().filter(
                status=ReservationStatus.CONFIRMED,
                start_time__lt=now - grace,
                no_show_flagged_at__isnull=True,
            )
            flagged = 0
            for reservation in candidates:
                reservation.flag_no_show(now)
                reservation.save(update_fields=["no_show_flagged_at", "updated_at"])
                uow.collect_events(reservation)
                flagged += 1
                logger.info(f"Reservation {reservation.pk} has no check-in since {reservation.start_time.isoformat()}")
        return flagged

    def _flag_overdue_keys(self, now) -> int:
        with DjangoUnitOfWork() as uow:
            candidates = (
                KeyAssignment.objects.select_for_update()
                .overdue(now)
                .filter(overdue_flagged_at__isnull=True)
            )
            flagged = 0
            for assignment in candidates:
                assignment.flag_overdue(now)
                assignment.save(update_fields=["overdue_flagged_at", "updated_at"])
                uow.collect_events(assignment)
                flagged += 1
                logger.info(
                    f"Key {assignment.key_id} held by user {assignment.user_id} "
                    f"overdue since {assignment.expected_return.isoformat()}"
                )
        return flagged
