"""Read paths over reservations. No locks are taken."""

from __future__ import annotations

from datetime import timedelta

from django.db.models import QuerySet  # type: ignore
from django.utils import timezone  # type: ignore

from shared.infrastructure.config import allocation_setting

from .domain.status import ReservationStatus
from .models import Reservation


def _base() -> QuerySet:
    return Reservation.objects.select_related("resource", "user", "key_assignment")


def upcoming_reservations(user_id=None, days: int | None = None, now=None) -> QuerySet:
    """Confirmed reservations starting within the next ``days`` days."""
    now = now or timezone.now()
    days = days if days is not None else int(allocation_setting('UPCOMING_WINDOW_DAYS'))
    qs = _base().filter(
        status=ReservationStatus.CONFIRMED,
        start_time__gte=now,
        start_time__lt=now + timedelta(days=days),
    )
    if user_id is not None:
        qs = qs.for_user(user_id)
    return qs.order_by("start_time")


def overdue_reservations(now=None) -> QuerySet:
    """Checked-in reservations past their end time."""
    return _base().overdue(now).order_by("end_time")


def reservations_with_unreturned_keys() -> QuerySet:
    return _base().filter(key_picked_up=True, key_returned=False).order_by("start_time")


def reservations_ready_for_key_pickup(now=None, lead: timedelta = timedelta(hours=1)) -> QuerySet:
    """Confirmed or checked-in reservations on keyed resources whose key is not out yet.

    Only reservations that start within ``lead`` of ``now`` (or already
    started and have not ended) are returned.
    """
    now = now or timezone.now()
    return (
        _base()
        .filter(
            status__in=[ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN],
            resource__requires_key=True,
            key_picked_up=False,
            start_time__lte=now + lead,
            end_time__gt=now,
        )
        .order_by("start_time")
    )
