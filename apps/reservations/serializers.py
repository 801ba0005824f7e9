"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.resources.models import ReservableResource

from .models import Reservation


class ReservationCreateSerializer(serializers.Serializer):
    """Booking request. Business rules are enforced by the booking engine."""

    resource = serializers.PrimaryKeyRelatedField(queryset=ReservableResource.objects.all())
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    number_of_people = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    request_key = serializers.CharField(required=False, allow_null=True, max_length=64, default=None)

    def validate(self, attrs):  # type: ignore
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return attrs


class ReservationSerializer(serializers.ModelSerializer):
    """Full reservation representation."""

    resource_name = serializers.ReadOnlyField(source="resource.name")
    user_id = serializers.ReadOnlyField(source="user.id")
    duration_minutes = serializers.ReadOnlyField()
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "resource",
            "resource_name",
            "user_id",
            "start_time",
            "end_time",
            "duration_minutes",
            "status",
            "number_of_people",
            "notes",
            "request_key",
            "key_picked_up",
            "key_picked_up_at",
            "key_returned",
            "key_returned_at",
            "key_assignment",
            "confirmed_at",
            "checked_in_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj: Reservation) -> bool:
        return obj.is_overdue()


class CancelReservationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class PickUpKeySerializer(serializers.Serializer):
    assignment = serializers.IntegerField(allow_null=True, default=None, min_value=1)
