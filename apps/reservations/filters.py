"""FilterSet definitions for reservation listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    """Filter by user, resource, status and a date range.

    ``start``/``end`` select reservations whose window overlaps the range.
    """

    user = django_filters.NumberFilter(field_name="user_id")
    resource = django_filters.NumberFilter(field_name="resource_id")
    status = django_filters.MultipleChoiceFilter(choices=Reservation.Status.choices)
    start = django_filters.IsoDateTimeFilter(field_name="end_time", lookup_expr="gt")
    end = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="lt")
    key_outstanding = django_filters.BooleanFilter(method="filter_key_outstanding")

    class Meta:
        model = Reservation
        fields = ["user", "resource", "status"]

    def filter_key_outstanding(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        if value:
            return queryset.filter(key_picked_up=True, key_returned=False)
        return queryset.exclude(key_picked_up=True, key_returned=False)
