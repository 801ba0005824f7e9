"""Reservable resource catalog."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.keys.domain.status import KeyType


class ReservableResource(models.Model):
    """A room or piece of equipment that can be held exclusively over a time window."""

    class ResourceType(models.TextChoices):
        ROOM = "room", _("Room")
        EQUIPMENT = "equipment", _("Equipment")
        OTHER = "other", _("Other")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    resource_type = models.CharField(
        max_length=20,
        choices=ResourceType.choices,
        default=ResourceType.ROOM,
    )
    capacity = models.PositiveIntegerField(default=1)
    floor_number = models.IntegerField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True, help_text=_("e.g. Floor 2, Room 201"))
    cost_per_hour = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("0 means free. Exposed for external billing only."),
    )
    requires_key = models.BooleanField(default=False)
    key_type = models.CharField(
        max_length=20,
        choices=KeyType.choices,
        blank=True,
        help_text=_("Type of key that opens this resource."),
    )
    key = models.ForeignKey(
        "keys.DormitoryKey",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="resources",
        help_text=_("The key that opens this resource. Empty means any key of the key type."),
    )
    key_location = models.CharField(max_length=255, blank=True, default="Reception")
    requires_approval = models.BooleanField(default=False)
    max_reservations_per_user_per_day = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Empty means the deployment default applies."),
    )
    min_duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    max_duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    next_maintenance = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservable resource")
        verbose_name_plural = _("Reservable resources")
        ordering = ["resource_type", "name"]
        indexes = [
            models.Index(fields=["resource_type", "is_active"], name="resource_type_active_idx"),
            models.Index(fields=["floor_number"], name="resource_floor_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_resource_type_display()})"

    @property
    def is_free(self) -> bool:
        return self.cost_per_hour == 0

    def has_capacity_for(self, people: int) -> bool:
        return people <= self.capacity

    def needs_maintenance(self, now=None) -> bool:
        now = now or timezone.now()
        return bool(self.next_maintenance and self.next_maintenance < now)

    def deactivate(self) -> None:
        self.is_active = False
        self.save(update_fields=["is_active", "updated_at"])

    def accepts_key(self, key) -> bool:
        """Whether handing out ``key`` gives access to this resource."""
        if not self.requires_key:
            return False
        if self.key_id:
            return key.pk == self.key_id
        return key.key_type == self.key_type
