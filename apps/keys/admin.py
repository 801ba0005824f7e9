"""Admin registration for keys."""

from __future__ import annotations

from django.contrib import admin

from .models import DormitoryKey, KeyAssignment


@admin.register(DormitoryKey)
class DormitoryKeyAdmin(admin.ModelAdmin):
    list_display = ("key_code", "key_type", "room_number", "floor_number", "status", "total_assignments", "lost_count")
    list_filter = ("status", "key_type", "floor_number")
    search_fields = ("key_code", "room_number", "description")
    readonly_fields = ("status", "total_assignments", "lost_count", "created_at", "updated_at")


@admin.register(KeyAssignment)
class KeyAssignmentAdmin(admin.ModelAdmin):
    list_display = ("key", "user", "status", "issued_at", "expected_return", "returned_at", "extension_count")
    list_filter = ("status", "issued_at")
    search_fields = ("key__key_code", "user__username", "user__email")
    readonly_fields = (
        "key",
        "user",
        "issued_by",
        "issued_at",
        "returned_at",
        "status",
        "extension_count",
        "overdue_flagged_at",
        "updated_at",
    )
