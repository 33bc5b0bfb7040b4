"""Admin registrations for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import BookingPeriod, RentalRequest


@admin.register(BookingPeriod)
class BookingPeriodAdmin(admin.ModelAdmin):
    list_display = ("id", "vehicle", "start_date", "end_date", "created_at")
    list_filter = ("vehicle",)
    date_hierarchy = "start_date"
    # periods are only created by approving a request
    readonly_fields = ("vehicle", "start_date", "end_date", "created_at")

    def has_add_permission(self, request):  # type: ignore
        return False


@admin.register(RentalRequest)
class RentalRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "vehicle", "user_id", "pick_up_date", "return_date", "status", "date_of_request")
    list_filter = ("status", "vehicle")
    search_fields = ("user_id", "vehicle__brand", "vehicle__model")
    readonly_fields = ("status", "decided_at", "booking_period", "date_of_request")
