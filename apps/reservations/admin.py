"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "resource",
        "user",
        "status",
        "start_time",
        "end_time",
        "number_of_people",
        "key_picked_up",
        "key_returned",
        "created_at",
    )
    list_filter = ("status", "resource__resource_type", "key_picked_up", "key_returned", "start_time")
    search_fields = ("resource__name", "user__username", "user__email", "request_key")
    readonly_fields = (
        "status",
        "created_at",
        "updated_at",
        "confirmed_at",
        "checked_in_at",
        "completed_at",
        "cancelled_at",
        "key_picked_up_at",
        "key_returned_at",
        "key_assignment",
        "overdue_flagged_at",
        "no_show_flagged_at",
    )
