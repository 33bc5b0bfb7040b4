"""Serializers for the reservation domain."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.fleet.models import Vehicle
from apps.fleet.serializers import VehicleSerializer
from shared.domain.value_objects import Money

from .models import BookingPeriod, RentalRequest
from .repositories import request_to_domain


class DateWindowSerializer(serializers.Serializer):
    """``start``/``end`` query parameters of the availability endpoints."""

    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["start"] >= attrs["end"]:
            raise serializers.ValidationError({"end": "End date must be after the start date."})
        if attrs["start"] < timezone.localdate():
            raise serializers.ValidationError({"start": "Pick-up date cannot be in the past."})
        return attrs


class RentalRequestWriteSerializer(serializers.Serializer):
    """Input of create and reschedule; the handlers do the real validation."""

    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    pick_up_date = serializers.DateField()
    return_date = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["pick_up_date"] >= attrs["return_date"]:
            raise serializers.ValidationError(
                {"return_date": "Return date must be after the pick-up date."}
            )
        return attrs


class BookingPeriodSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingPeriod
        fields = ["id", "vehicle_id", "start_date", "end_date"]
        read_only_fields = fields


class RentalRequestSerializer(serializers.ModelSerializer):
    """Read side of a request, with the derived price estimate."""

    vehicle = VehicleSerializer(read_only=True)
    rental_days = serializers.IntegerField(read_only=True)
    estimated_total = serializers.SerializerMethodField()
    currency = serializers.SerializerMethodField()
    booking_period = BookingPeriodSerializer(read_only=True)

    class Meta:
        model = RentalRequest
        fields = [
            "id",
            "user_id",
            "vehicle",
            "pick_up_date",
            "return_date",
            "rental_days",
            "estimated_total",
            "currency",
            "date_of_request",
            "status",
            "decided_at",
            "booking_period",
        ]
        read_only_fields = fields

    def _quote(self, obj: RentalRequest) -> Money:
        return request_to_domain(obj).quote(obj.vehicle.price_per_day, settings.RENTACAR["CURRENCY"])

    def get_estimated_total(self, obj: RentalRequest) -> str:
        return str(self._quote(obj).amount.quantize(Decimal("0.01")))

    def get_currency(self, obj: RentalRequest) -> str:
        return self._quote(obj).currency
