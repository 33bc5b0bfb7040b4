"""Pure reservation domain: no ORM, no HTTP."""
