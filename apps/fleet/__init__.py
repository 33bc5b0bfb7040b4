"""Fleet app package.

Holds the Vehicle record the reservation core books against. Fleet
management itself (creating, editing and retiring vehicles, photos) is done
through the Django admin; the reservation core only needs
``services.get_vehicle``.
"""
