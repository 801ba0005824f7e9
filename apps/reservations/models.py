"""Reservations of catalog resources over half-open time windows."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import EventRecorder
from shared.domain.exceptions import (
    InvalidTransitionError,
    KeyOutstandingError,
    ResourceUnavailableError,
)
from shared.domain.value_objects import TimeWindow

from .domain.events import (
    ReservationCancelled,
    ReservationCheckedIn,
    ReservationCompleted,
    ReservationConfirmed,
    ReservationCreated,
    ReservationKeyPickedUp,
    ReservationKeyReturned,
    ReservationMarkedNoShow,
    ReservationNoShowDetected,
    ReservationOverdue,
)
from .domain.status import BLOCKING_STATUSES, ReservationStatus, ensure_transition


class ReservationQuerySet(models.QuerySet):
    def blocking(self):
        return self.filter(status__in=BLOCKING_STATUSES)

    def overlapping(self, start, end):
        return self.filter(start_time__lt=end, end_time__gt=start)

    def for_user(self, user_id):
        return self.filter(user_id=user_id)

    def overdue(self, now=None):
        now = now or timezone.now()
        return self.filter(status=ReservationStatus.CHECKED_IN, end_time__lt=now)


class Reservation(EventRecorder, models.Model):
    """A user's hold on a resource for ``[start_time, end_time)``."""

    Status = ReservationStatus

    resource = models.ForeignKey(
        "resources.ReservableResource",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.PENDING,
    )
    number_of_people = models.PositiveIntegerField(default=1)
    notes = models.TextField(blank=True)
    request_key = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text=_("Client supplied idempotency key, unique per user."),
    )

    key_picked_up = models.BooleanField(default=False)
    key_picked_up_at = models.DateTimeField(null=True, blank=True)
    key_returned = models.BooleanField(default=False)
    key_returned_at = models.DateTimeField(null=True, blank=True)
    key_assignment = models.ForeignKey(
        "keys.KeyAssignment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservations",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    overdue_flagged_at = models.DateTimeField(null=True, blank=True)
    no_show_flagged_at = models.DateTimeField(null=True, blank=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["start_time"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="reservation_end_after_start",
            ),
            models.UniqueConstraint(
                fields=["user", "request_key"],
                condition=Q(request_key__isnull=False),
                name="unique_reservation_request_key",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_time", "end_time"], name="reservation_window_idx"),
            models.Index(fields=["user", "start_time"], name="reservation_user_start_idx"),
            models.Index(fields=["status"], name="reservation_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.pk}: {self.resource_id} by {self.user_id} ({self.status})"

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start_time, self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.window.minutes

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def key_outstanding(self) -> bool:
        return self.key_picked_up and not self.key_returned

    def is_overdue(self, now=None) -> bool:
        now = now or timezone.now()
        return self.status == ReservationStatus.CHECKED_IN and self.end_time < now

    # ----- lifecycle -----

    def _move_to(self, target: str) -> None:
        ensure_transition(self.pk, self.status, target)
        self.status = target

    def _ensure_key_back(self) -> None:
        if self.key_outstanding:
            raise KeyOutstandingError(
                f"Reservation {self.pk} still has its key out",
                reservation_id=self.pk,
                key_assignment_id=self.key_assignment_id,
            )

    def record_created(self) -> None:
        self.add_event(ReservationCreated(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
            start_time=self.start_time,
            end_time=self.end_time,
            status=str(self.status),
        ))
        if self.status == ReservationStatus.CONFIRMED:
            self._record_confirmed()

    def _record_confirmed(self) -> None:
        self.add_event(ReservationConfirmed(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
            start_time=self.start_time,
            end_time=self.end_time,
        ))

    def confirm(self, now=None) -> None:
        self._move_to(ReservationStatus.CONFIRMED)
        self.confirmed_at = now or timezone.now()
        self._record_confirmed()

    def cancel(self, reason: str = "", now=None) -> None:
        ensure_transition(self.pk, self.status, ReservationStatus.CANCELLED)
        self._ensure_key_back()
        self.status = ReservationStatus.CANCELLED
        self.cancelled_at = now or timezone.now()
        self.cancellation_reason = reason
        self.add_event(ReservationCancelled(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
            reason=reason,
        ))

    def check_in(self, now=None) -> None:
        now = now or timezone.now()
        ensure_transition(self.pk, self.status, ReservationStatus.CHECKED_IN)
        if now < self.start_time:
            raise InvalidTransitionError(
                f"Reservation {self.pk} starts at {self.start_time.isoformat()}; check-in is not open yet",
                reservation_id=self.pk,
                from_status=str(self.status),
                to_status=str(ReservationStatus.CHECKED_IN),
                start_time=self.start_time,
            )
        self.status = ReservationStatus.CHECKED_IN
        self.checked_in_at = now
        self.add_event(ReservationCheckedIn(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
        ))

    def complete(self, now=None) -> None:
        ensure_transition(self.pk, self.status, ReservationStatus.COMPLETED)
        if self.resource.requires_key and not self.key_returned:
            raise KeyOutstandingError(
                f"Reservation {self.pk} cannot be completed before the key is returned",
                reservation_id=self.pk,
                key_assignment_id=self.key_assignment_id,
            )
        self.status = ReservationStatus.COMPLETED
        self.completed_at = now or timezone.now()
        self.add_event(ReservationCompleted(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
        ))

    def mark_no_show(self, grace: timedelta, now=None) -> None:
        now = now or timezone.now()
        ensure_transition(self.pk, self.status, ReservationStatus.NO_SHOW)
        if now <= self.start_time + grace:
            raise InvalidTransitionError(
                f"Reservation {self.pk} is still within its check-in grace period",
                reservation_id=self.pk,
                from_status=str(self.status),
                to_status=str(ReservationStatus.NO_SHOW),
                start_time=self.start_time,
                grace_minutes=int(grace.total_seconds() // 60),
            )
        self.status = ReservationStatus.NO_SHOW
        self.add_event(ReservationMarkedNoShow(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
        ))

    # ----- key coupling -----

    def ensure_key_pickup_allowed(self) -> None:
        if not self.resource.requires_key:
            raise ResourceUnavailableError(
                f"Resource {self.resource_id} does not use a key",
                reservation_id=self.pk,
                resource_id=self.resource_id,
            )
        if self.status not in (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN):
            raise InvalidTransitionError(
                f"Key pickup is not possible for a {self.status} reservation",
                reservation_id=self.pk,
                from_status=str(self.status),
                to_status="key_picked_up",
            )
        if self.key_picked_up:
            raise InvalidTransitionError(
                f"Key for reservation {self.pk} was already picked up",
                reservation_id=self.pk,
                from_status="key_picked_up",
                to_status="key_picked_up",
            )

    def pick_up_key(self, assignment, now=None) -> None:
        self.ensure_key_pickup_allowed()
        self.key_picked_up = True
        self.key_picked_up_at = now or timezone.now()
        self.key_assignment = assignment
        self.add_event(ReservationKeyPickedUp(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            user_id=self.user_id,
            key_assignment_id=assignment.pk,
        ))

    def return_key(self, now=None) -> None:
        if not self.key_picked_up or self.key_returned:
            raise InvalidTransitionError(
                f"Reservation {self.pk} has no key out to return",
                reservation_id=self.pk,
                from_status="key_returned" if self.key_returned else "no_key",
                to_status="key_returned",
            )
        self.key_returned = True
        self.key_returned_at = now or timezone.now()
        self.add_event(ReservationKeyReturned(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            user_id=self.user_id,
            key_assignment_id=self.key_assignment_id,
        ))

    # ----- sweeper markers -----

    def flag_overdue(self, now=None) -> None:
        """Mark a checked-in reservation as past its end. Status is untouched."""
        self.overdue_flagged_at = now or timezone.now()
        self.add_event(ReservationOverdue(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
            end_time=self.end_time,
        ))

    def flag_no_show(self, now=None) -> None:
        self.no_show_flagged_at = now or timezone.now()
        self.add_event(ReservationNoShowDetected(
            aggregate_id=self.pk,
            reservation_id=self.pk,
            resource_id=self.resource_id,
            user_id=self.user_id,
            start_time=self.start_time,
        ))
