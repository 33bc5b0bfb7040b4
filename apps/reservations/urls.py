"""URL routing for the reservation domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AvailableVehiclesView, RentalRequestViewSet, VehicleAvailabilityView

router = DefaultRouter()
router.register(r"requests", RentalRequestViewSet, basename="rental-request")

urlpatterns = [
    path("vehicles/available/", AvailableVehiclesView.as_view(), name="vehicles-available"),
    path(
        "vehicles/<int:vehicle_id>/availability/",
        VehicleAvailabilityView.as_view(),
        name="vehicle-availability",
    ),
    path("", include(router.urls)),
]
