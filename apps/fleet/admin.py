"""Admin registrations for the fleet."""

from __future__ import annotations

from django.contrib import admin

from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("brand", "model", "year", "passenger_seats", "price_per_day", "updated_at")
    list_filter = ("brand", "year", "passenger_seats")
    search_fields = ("brand", "model", "description")
    readonly_fields = ("created_at", "updated_at")
