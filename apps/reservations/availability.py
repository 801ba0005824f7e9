"""
Availability Index

Answers "is this resource free for [start, end)?" and "how many
reservations does this user hold on this resource on that day?".

Two windows conflict iff ``s1 < e2 and s2 < e1``; touching endpoints do
not. Only pending, confirmed and checked-in reservations block.
"""

from __future__ import annotations

import logging

from django.db import connection  # type: ignore

from shared.domain.exceptions import ConflictError
from shared.domain.value_objects import TimeWindow, local_day_bounds
from shared.infrastructure.config import allocation_setting

from .domain.status import NOT_COUNTED_STATUSES
from .models import Reservation

logger = logging.getLogger(__name__)


def _blocking_queryset(resource_id, window: TimeWindow, exclude_reservation_id=None):
    qs = (
        Reservation.objects.blocking()
        .filter(resource_id=resource_id)
        .overlapping(window.start, window.end)
        .order_by("start_time", "pk")
    )
    if exclude_reservation_id is not None:
        qs = qs.exclude(pk=exclude_reservation_id)
    if connection.in_atomic_block and connection.features.has_select_for_update:
        qs = qs.select_for_update()
    return qs


def conflicts(resource_id, start, end, exclude_reservation_id=None) -> list[Reservation]:
    """Blocking reservations on ``resource_id`` overlapping ``[start, end)``."""
    window = TimeWindow(start, end)
    return list(_blocking_queryset(resource_id, window, exclude_reservation_id))


def is_available(resource_id, start, end, exclude_reservation_id=None) -> bool:
    window = TimeWindow(start, end)
    return not _blocking_queryset(resource_id, window, exclude_reservation_id).exists()


def ensure_available(resource_id, start, end, exclude_reservation_id=None) -> None:
    """Raise ``ConflictError`` naming the blocking reservations, if any."""
    blocking = conflicts(resource_id, start, end, exclude_reservation_id)
    if blocking:
        ids = [reservation.pk for reservation in blocking]
        logger.info(f"Resource {resource_id} is taken for {start.isoformat()} - {end.isoformat()}: {ids}")
        raise ConflictError(
            f"Resource {resource_id} is already reserved in the requested window",
            resource_id=resource_id,
            start=start,
            end=end,
            conflicting_reservation_ids=ids,
        )


def daily_count(user_id, resource_id, start) -> int:
    """Reservations of the user on the resource starting on the local calendar day of ``start``."""
    day_start, day_end = local_day_bounds(start)
    return (
        Reservation.objects.for_user(user_id)
        .filter(resource_id=resource_id, start_time__gte=day_start, start_time__lt=day_end)
        .exclude(status__in=NOT_COUNTED_STATUSES)
        .count()
    )


def daily_limit(resource) -> int:
    if resource.max_reservations_per_user_per_day is not None:
        return resource.max_reservations_per_user_per_day
    return int(allocation_setting('DAILY_RESERVATION_LIMIT'))
