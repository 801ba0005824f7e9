"""Key catalog and custody records."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import EventRecorder
from shared.domain.exceptions import InvalidTransitionError

from .domain.events import (
    KeyAssignmentExtended,
    KeyIssued,
    KeyOverdue,
    KeyPutOutOfService,
    KeyReinstated,
    KeyReportedDamaged,
    KeyReportedLost,
    KeyReturned,
)
from .domain.status import (
    ADMINISTRATIVE_STATES,
    AssignmentStatus,
    KeyStatus,
    KeyType,
    ensure_assignment_transition,
    ensure_key_transition,
)


class DormitoryKey(EventRecorder, models.Model):
    """A physical key. Its status mirrors whether an assignment currently covers it."""

    Type = KeyType
    Status = KeyStatus

    key_code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)
    key_type = models.CharField(max_length=20, choices=KeyType.choices, default=KeyType.ROOM)
    room_number = models.CharField(max_length=20, blank=True)
    floor_number = models.IntegerField(null=True, blank=True)
    location_notes = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=KeyStatus.choices, default=KeyStatus.AVAILABLE)
    damage_notes = models.TextField(blank=True)
    total_assignments = models.PositiveIntegerField(default=0)
    lost_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Dormitory key")
        verbose_name_plural = _("Dormitory keys")
        ordering = ["key_code"]
        indexes = [
            models.Index(fields=["status"], name="key_status_idx"),
            models.Index(fields=["key_type", "status"], name="key_type_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.key_code} ({self.get_key_type_display()})"

    @property
    def can_be_issued(self) -> bool:
        return self.status == KeyStatus.AVAILABLE

    @property
    def needs_attention(self) -> bool:
        return self.status in ADMINISTRATIVE_STATES

    def mark_assigned(self, assignment: "KeyAssignment") -> None:
        ensure_key_transition(self.pk, self.status, KeyStatus.ASSIGNED)
        self.status = KeyStatus.ASSIGNED
        self.total_assignments += 1
        self.add_event(KeyIssued(
            aggregate_id=self.pk,
            key_id=self.pk,
            assignment_id=assignment.pk,
            user_id=assignment.user_id,
            expected_return=assignment.expected_return,
        ))

    def mark_returned(self, assignment: "KeyAssignment") -> None:
        ensure_key_transition(self.pk, self.status, KeyStatus.AVAILABLE)
        self.status = KeyStatus.AVAILABLE
        self.add_event(KeyReturned(
            aggregate_id=self.pk,
            key_id=self.pk,
            assignment_id=assignment.pk,
            user_id=assignment.user_id,
        ))

    def mark_lost(self, assignment: "KeyAssignment") -> None:
        ensure_key_transition(self.pk, self.status, KeyStatus.LOST)
        self.status = KeyStatus.LOST
        self.lost_count += 1
        self.add_event(KeyReportedLost(
            aggregate_id=self.pk,
            key_id=self.pk,
            assignment_id=assignment.pk,
            user_id=assignment.user_id,
        ))

    def mark_damaged(self, assignment: "KeyAssignment", description: str = "") -> None:
        ensure_key_transition(self.pk, self.status, KeyStatus.DAMAGED)
        self.status = KeyStatus.DAMAGED
        if description:
            self.damage_notes = description
        self.add_event(KeyReportedDamaged(
            aggregate_id=self.pk,
            key_id=self.pk,
            assignment_id=assignment.pk,
            user_id=assignment.user_id,
            description=description,
        ))

    def put_out_of_service(self, reason: str = "") -> None:
        ensure_key_transition(self.pk, self.status, KeyStatus.OUT_OF_SERVICE)
        self.status = KeyStatus.OUT_OF_SERVICE
        if reason:
            self.damage_notes = reason
        self.add_event(KeyPutOutOfService(aggregate_id=self.pk, key_id=self.pk, reason=reason))

    def reinstate(self) -> None:
        """Administrative exit from lost / damaged / out-of-service."""
        if self.status not in ADMINISTRATIVE_STATES:
            raise InvalidTransitionError(
                f"Key {self.key_code} is {self.status}; only lost, damaged or out-of-service keys can be reinstated",
                key_id=self.pk,
                from_status=str(self.status),
                to_status=str(KeyStatus.AVAILABLE),
            )
        previous = self.status
        self.status = KeyStatus.AVAILABLE
        self.damage_notes = ""
        self.add_event(KeyReinstated(aggregate_id=self.pk, key_id=self.pk, previous_status=str(previous)))


class KeyAssignmentQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=AssignmentStatus.ACTIVE)

    def for_user(self, user_id):
        return self.filter(user_id=user_id)

    def overdue(self, now=None):
        now = now or timezone.now()
        return self.active().filter(expected_return__isnull=False, expected_return__lt=now)


class KeyAssignment(EventRecorder, models.Model):
    """Custody record: ``user`` holds ``key`` from ``issued_at`` until closed."""

    Status = AssignmentStatus

    key = models.ForeignKey(DormitoryKey, on_delete=models.PROTECT, related_name="assignments")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="key_assignments",
    )
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_key_assignments",
    )
    issued_at = models.DateTimeField(default=timezone.now)
    expected_return = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Empty means open-ended custody."),
    )
    returned_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=AssignmentStatus.choices,
        default=AssignmentStatus.ACTIVE,
    )
    issue_notes = models.CharField(max_length=255, blank=True)
    return_notes = models.CharField(max_length=255, blank=True)
    condition_on_return = models.CharField(max_length=50, blank=True)
    extension_count = models.PositiveSmallIntegerField(default=0)
    overdue_flagged_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = KeyAssignmentQuerySet.as_manager()

    class Meta:
        verbose_name = _("Key assignment")
        verbose_name_plural = _("Key assignments")
        ordering = ["-issued_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["key"],
                condition=Q(status="active"),
                name="one_active_assignment_per_key",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "status"], name="assignment_user_status_idx"),
            models.Index(fields=["status", "expected_return"], name="assignment_due_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.key_id} -> {self.user_id} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE

    def is_overdue(self, now=None) -> bool:
        now = now or timezone.now()
        return self.is_active and self.expected_return is not None and self.expected_return < now

    def close(self, status: str, *, now=None, condition: str = "", notes: str = "") -> None:
        ensure_assignment_transition(self.pk, self.status, status)
        self.status = status
        self.returned_at = now or timezone.now()
        if condition:
            self.condition_on_return = condition
        if notes:
            self.return_notes = notes

    def extend(self, expected_return) -> None:
        if not self.is_active:
            ensure_assignment_transition(self.pk, self.status, AssignmentStatus.ACTIVE)
        self.expected_return = expected_return
        self.extension_count += 1
        self.overdue_flagged_at = None
        self.add_event(KeyAssignmentExtended(
            aggregate_id=self.pk,
            key_id=self.key_id,
            assignment_id=self.pk,
            expected_return=expected_return,
        ))

    def flag_overdue(self, now=None) -> None:
        self.overdue_flagged_at = now or timezone.now()
        self.add_event(KeyOverdue(
            aggregate_id=self.pk,
            key_id=self.key_id,
            assignment_id=self.pk,
            user_id=self.user_id,
            expected_return=self.expected_return,
        ))
