"""FilterSet definitions for the resource catalog."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import ReservableResource


class ReservableResourceFilterSet(django_filters.FilterSet):
    """FilterSet for ReservableResource used by the list endpoint."""

    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    min_capacity = django_filters.NumberFilter(field_name="capacity", lookup_expr="gte")
    free = django_filters.BooleanFilter(method="filter_free")

    class Meta:
        model = ReservableResource
        fields = ["resource_type", "floor_number", "requires_key", "requires_approval", "is_active"]

    def filter_free(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        if value:
            return queryset.filter(cost_per_hour=0)
        return queryset.exclude(cost_per_hour=0)
