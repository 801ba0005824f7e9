"""Serializers for the resource catalog."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import ReservableResource


class ReservableResourceSerializer(serializers.ModelSerializer):
    is_free = serializers.ReadOnlyField()

    class Meta:
        model = ReservableResource
        fields = [
            "id",
            "name",
            "description",
            "resource_type",
            "capacity",
            "floor_number",
            "location",
            "cost_per_hour",
            "is_free",
            "requires_key",
            "key_type",
            "key",
            "key_location",
            "requires_approval",
            "max_reservations_per_user_per_day",
            "min_duration_minutes",
            "max_duration_minutes",
            "is_active",
            "next_maintenance",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        instance = self.instance
        requires_key = attrs.get("requires_key", getattr(instance, "requires_key", False))
        key_type = attrs.get("key_type", getattr(instance, "key_type", ""))
        key = attrs.get("key", getattr(instance, "key", None))
        if key is not None:
            if key_type and key_type != key.key_type:
                raise serializers.ValidationError({"key": f"Key {key.key_code} is not a {key_type} key."})
            key_type = attrs["key_type"] = key.key_type
        if requires_key and not key_type:
            raise serializers.ValidationError({"key_type": "Resources that require a key must name the key type."})

        min_minutes = attrs.get("min_duration_minutes", getattr(instance, "min_duration_minutes", None))
        max_minutes = attrs.get("max_duration_minutes", getattr(instance, "max_duration_minutes", None))
        if min_minutes and max_minutes and min_minutes > max_minutes:
            raise serializers.ValidationError(
                {"max_duration_minutes": "Maximum duration must not be shorter than the minimum."}
            )
        return attrs


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()

    def validate(self, attrs):  # type: ignore
        if attrs["start"] >= attrs["end"]:
            raise serializers.ValidationError("start must be before end.")
        return attrs
