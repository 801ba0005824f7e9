"""Aggregations behind the analytics endpoints."""

from __future__ import annotations

from django.db.models import Avg, Count, F, QuerySet  # type: ignore
from django.utils import timezone  # type: ignore

from apps.keys.domain.status import KeyStatus
from apps.keys.models import DormitoryKey, KeyAssignment
from apps.reservations.domain.status import ReservationStatus
from apps.reservations.models import Reservation


def _counts_by(queryset: QuerySet, field: str, choices) -> dict[str, int]:
    counts = {str(value): 0 for value in choices.values}
    for row in queryset.values(field).annotate(total=Count("id")):
        counts[str(row[field])] = row["total"]
    return counts


def reservation_statistics(queryset: QuerySet | None = None) -> dict:
    """
    Reservation totals for ``queryset`` (all reservations by default).

    Returns:
        dict: total, per status, completed and no-show counts,
        per resource type and the average duration in minutes
    """
    queryset = Reservation.objects.all() if queryset is None else queryset
    by_status = _counts_by(queryset, "status", ReservationStatus)

    by_resource_type = {
        row["resource__resource_type"]: row["total"]
        for row in queryset.values("resource__resource_type").annotate(total=Count("id"))
    }

    average = queryset.aggregate(duration=Avg(F("end_time") - F("start_time")))["duration"]

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "completed": by_status[ReservationStatus.COMPLETED],
        "no_show": by_status[ReservationStatus.NO_SHOW],
        "by_resource_type": by_resource_type,
        "average_duration_minutes": round(average.total_seconds() / 60, 1) if average is not None else None,
    }


def key_statistics(now=None) -> dict:
    now = now or timezone.now()
    by_status = _counts_by(DormitoryKey.objects.all(), "status", KeyStatus)
    return {
        "total": sum(by_status.values()),
        "available": by_status[KeyStatus.AVAILABLE],
        "assigned": by_status[KeyStatus.ASSIGNED],
        "lost": by_status[KeyStatus.LOST],
        "damaged": by_status[KeyStatus.DAMAGED],
        "out_of_service": by_status[KeyStatus.OUT_OF_SERVICE],
        "active_assignments": KeyAssignment.objects.active().count(),
        "overdue_assignments": KeyAssignment.objects.overdue(now).count(),
    }
