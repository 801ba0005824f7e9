"""Serializers for the key custody domain."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import DormitoryKey, KeyAssignment


class DormitoryKeySerializer(serializers.ModelSerializer):
    """Key catalog entry. Status is driven by the custody engine only."""

    class Meta:
        model = DormitoryKey
        fields = [
            "id",
            "key_code",
            "description",
            "key_type",
            "room_number",
            "floor_number",
            "location_notes",
            "status",
            "damage_notes",
            "total_assignments",
            "lost_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "status",
            "damage_notes",
            "total_assignments",
            "lost_count",
            "created_at",
            "updated_at",
        ]


class KeyAssignmentSerializer(serializers.ModelSerializer):
    key_code = serializers.ReadOnlyField(source="key.key_code")
    user_id = serializers.ReadOnlyField(source="user.id")
    issued_by_id = serializers.ReadOnlyField(source="issued_by.id")
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = KeyAssignment
        fields = [
            "id",
            "key",
            "key_code",
            "user_id",
            "issued_by_id",
            "issued_at",
            "expected_return",
            "returned_at",
            "status",
            "issue_notes",
            "return_notes",
            "condition_on_return",
            "extension_count",
            "overdue_flagged_at",
            "is_overdue",
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj: KeyAssignment) -> bool:
        return obj.is_overdue()


class IssueKeySerializer(serializers.Serializer):
    user = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.all())
    expected_return = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class ReturnKeySerializer(serializers.Serializer):
    condition = serializers.CharField(required=False, allow_blank=True, max_length=50, default="")
    notes = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    damaged = serializers.BooleanField(required=False, default=False)
    lost = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):  # type: ignore
        if attrs.get("damaged") and attrs.get("lost"):
            raise serializers.ValidationError("A key cannot be returned both damaged and lost.")
        return attrs


class ReportDamageSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, default="")


class ExtendAssignmentSerializer(serializers.Serializer):
    expected_return = serializers.DateTimeField()


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
