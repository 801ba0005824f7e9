"""Read paths over the key catalog and custody records. No locks are taken."""

from __future__ import annotations

from django.db.models import QuerySet  # type: ignore
from django.utils import timezone  # type: ignore

from .domain.status import ADMINISTRATIVE_STATES
from .models import DormitoryKey, KeyAssignment


def find_active_for_user(user_id) -> QuerySet:
    """Keys currently held by ``user_id``."""
    return (
        KeyAssignment.objects.active()
        .for_user(user_id)
        .select_related("key")
        .order_by("issued_at")
    )


def find_active_for_user_and_key_type(user_id, key_type: str) -> QuerySet:
    """Active assignments of ``user_id`` for keys of ``key_type``, oldest first."""
    return find_active_for_user(user_id).filter(key__key_type=key_type)


def find_active_for_user_and_resource(user_id, resource) -> QuerySet:
    """Active assignments of ``user_id`` whose key opens ``resource``.

    A resource bound to one key only matches that key; otherwise any key
    of the resource's key type does.
    """
    if resource.key_id:
        return find_active_for_user(user_id).filter(key_id=resource.key_id)
    return find_active_for_user_and_key_type(user_id, resource.key_type)


def keys_needing_attention() -> QuerySet:
    """Lost, damaged and out-of-service keys."""
    return DormitoryKey.objects.filter(status__in=list(ADMINISTRATIVE_STATES))


def overdue_assignments(now=None) -> QuerySet:
    now = now or timezone.now()
    return KeyAssignment.objects.overdue(now).select_related("key", "user").order_by("expected_return")


def assignment_history(user_id) -> QuerySet:
    return KeyAssignment.objects.for_user(user_id).select_related("key").order_by("-issued_at")
