"""Admin registration for the resource catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import ReservableResource


@admin.register(ReservableResource)
class ReservableResourceAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "resource_type",
        "floor_number",
        "capacity",
        "cost_per_hour",
        "requires_key",
        "key",
        "requires_approval",
        "is_active",
    )
    list_filter = ("resource_type", "is_active", "requires_key", "requires_approval", "floor_number")
    search_fields = ("name", "location", "description")
    readonly_fields = ("created_at", "updated_at")
