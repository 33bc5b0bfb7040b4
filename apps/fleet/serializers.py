"""Serializers for the fleet."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = [
            "id",
            "brand",
            "model",
            "year",
            "passenger_seats",
            "description",
            "image_url",
            "price_per_day",
        ]
        read_only_fields = fields
