"""Use cases of the reservation core."""
