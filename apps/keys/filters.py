"""FilterSet definitions for keys and key assignments."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import DormitoryKey, KeyAssignment


class DormitoryKeyFilterSet(django_filters.FilterSet):
    room_number = django_filters.CharFilter(field_name="room_number", lookup_expr="iexact")
    code = django_filters.CharFilter(field_name="key_code", lookup_expr="icontains")

    class Meta:
        model = DormitoryKey
        fields = ["status", "key_type", "floor_number", "room_number"]


class KeyAssignmentFilterSet(django_filters.FilterSet):
    user = django_filters.NumberFilter(field_name="user_id")
    key = django_filters.NumberFilter(field_name="key_id")
    issued_from = django_filters.IsoDateTimeFilter(field_name="issued_at", lookup_expr="gte")
    issued_to = django_filters.IsoDateTimeFilter(field_name="issued_at", lookup_expr="lt")

    class Meta:
        model = KeyAssignment
        fields = ["status", "user", "key"]
