"""Vehicle lookup consumed by the reservation core."""

from __future__ import annotations

from shared.domain.exceptions import NotFoundError

from .models import Vehicle


def get_vehicle(vehicle_id) -> Vehicle:
    """Return the vehicle or raise ``NotFoundError``."""

    try:
        return Vehicle.objects.get(pk=vehicle_id)
    except (Vehicle.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)


def vehicle_exists(vehicle_id) -> bool:
    try:
        return Vehicle.objects.filter(pk=vehicle_id).exists()
    except (ValueError, TypeError):
        return False
