"""
Reservation Domain Events

Published by the unit of work after the transaction that produced them has
committed.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from shared.domain.base import DomainEvent


# ===== Request workflow events =====

@dataclass(kw_only=True)
class RequestCreated(DomainEvent):
    request_id: int
    vehicle_id: int
    user_id: str
    pick_up_date: date
    return_date: date


@dataclass(kw_only=True)
class RequestRescheduled(DomainEvent):
    request_id: int
    vehicle_id: int
    pick_up_date: date
    return_date: date


@dataclass(kw_only=True)
class RequestApproved(DomainEvent):
    """
    Event: PENDING -> APPROVED

    Triggers:
    - Notify the requester that the vehicle is reserved
    """
    request_id: int
    vehicle_id: int
    user_id: str
    booking_period_id: int
    pick_up_date: date
    return_date: date


@dataclass(kw_only=True)
class RequestDeclined(DomainEvent):
    """
    Event: PENDING -> DECLINED

    Triggers:
    - Notify the requester to pick another vehicle or other dates
    """
    request_id: int
    vehicle_id: int
    user_id: str
    pick_up_date: date
    return_date: date


@dataclass(kw_only=True)
class RequestDeleted(DomainEvent):
    request_id: int
    vehicle_id: int
    user_id: str
    status: str
    released_booking_period_id: Optional[int] = None


# ===== Schedule events =====

@dataclass(kw_only=True)
class PeriodBooked(DomainEvent):
    """Dates are now blocked for the vehicle."""
    vehicle_id: int
    booking_period_id: int
    request_id: Optional[int]
    start_date: date
    end_date: date


@dataclass(kw_only=True)
class PeriodReleased(DomainEvent):
    """Dates are available again."""
    vehicle_id: int
    booking_period_id: int
    start_date: date
    end_date: date
