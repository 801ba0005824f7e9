"""Catalog reads for reservable resources."""

from __future__ import annotations

import logging

from django.db.models import Q, QuerySet  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import NotFoundError

from .models import ReservableResource

logger = logging.getLogger(__name__)


def active_resources() -> QuerySet:
    return ReservableResource.objects.filter(is_active=True)


def get_resource(resource_id, *, lock: bool = False) -> ReservableResource:
    queryset = ReservableResource.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=resource_id)
    except ReservableResource.DoesNotExist:
        raise NotFoundError(f"Resource {resource_id} not found", resource_id=resource_id)


def search_resources(term: str) -> QuerySet:
    """Active resources whose name, description or location mention ``term``."""
    term = (term or "").strip()
    qs = active_resources()
    if not term:
        return qs
    return qs.filter(Q(name__icontains=term) | Q(description__icontains=term) | Q(location__icontains=term))


def free_resources() -> QuerySet:
    return active_resources().filter(cost_per_hour=0)


def resources_on_floor(floor_number: int) -> QuerySet:
    return active_resources().filter(floor_number=floor_number)


def resources_needing_maintenance(now=None) -> QuerySet:
    now = now or timezone.now()
    return active_resources().filter(next_maintenance__isnull=False, next_maintenance__lt=now)


def deactivate_resource(resource: ReservableResource) -> ReservableResource:
    """Soft delete. Existing reservations keep pointing at the record."""
    if resource.is_active:
        resource.deactivate()
        logger.info(f"Resource {resource.pk} ({resource.name}) deactivated")
    return resource
