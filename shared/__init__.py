"""
Shared Kernel

Building blocks reused by every domain app of the RentACar platform:
entities and aggregates, value objects, the error taxonomy, the unit of
work and the in-process message bus.
"""
