"""Tests for the vehicle lookup used by the reservation core."""

from __future__ import annotations

from decimal import Decimal

from django.db import IntegrityError, transaction
from django.test import TestCase

from apps.fleet.models import Vehicle
from apps.fleet.services import get_vehicle, vehicle_exists
from shared.domain.exceptions import NotFoundError


class VehicleLookupTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = Vehicle.objects.create(
            brand="Dacia", model="Duster", year=2022, passenger_seats=5, price_per_day=Decimal("39.90")
        )

    def test_get_vehicle(self) -> None:
        self.assertEqual(get_vehicle(self.vehicle.pk), self.vehicle)

    def test_missing_vehicle(self) -> None:
        with self.assertRaises(NotFoundError):
            get_vehicle(self.vehicle.pk + 1)
        with self.assertRaises(NotFoundError):
            get_vehicle("not-a-number")

    def test_vehicle_exists(self) -> None:
        self.assertTrue(vehicle_exists(self.vehicle.pk))
        self.assertFalse(vehicle_exists(self.vehicle.pk + 1))
        self.assertFalse(vehicle_exists("abc"))

    def test_price_must_be_positive(self) -> None:
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Vehicle.objects.create(brand="Fiat", model="Panda", year=2015, price_per_day=Decimal("0"))
