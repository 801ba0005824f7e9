"""
Reservation Status Finite State Machine

State transitions:
- PENDING -> CONFIRMED (approved / auto-confirmed)
- PENDING -> CANCELLED
- CONFIRMED -> CHECKED_IN (user arrived, at or after start)
- CONFIRMED -> CANCELLED
- CONFIRMED -> NO_SHOW (grace period after start passed without check-in)
- CHECKED_IN -> COMPLETED (checked out)

COMPLETED, CANCELLED and NO_SHOW are terminal. A checked-in reservation
can only leave through checkout, even when it is overdue.
"""

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import InvalidTransitionError


class ReservationStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    CONFIRMED = "confirmed", _("Confirmed")
    CHECKED_IN = "checked_in", _("Checked in")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")
    NO_SHOW = "no_show", _("No show")


TRANSITIONS: dict[str, frozenset[str]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}

# Statuses that hold the resource for their window.
BLOCKING_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
)

# Statuses that do not count towards the daily per-user limit.
NOT_COUNTED_STATUSES = (
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
)


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(reservation_id, current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Reservation {reservation_id} cannot move from {current} to {target}",
            reservation_id=reservation_id,
            from_status=str(current),
            to_status=str(target),
        )
