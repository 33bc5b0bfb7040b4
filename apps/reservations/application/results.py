"""
Typed outcomes of the reservation use cases

Losing an availability race is an expected business outcome, so it is
returned as a ``Conflict`` instead of being raised.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from shared.domain.value_objects import DateRange
from apps.reservations.domain.entities import RentalRequest
from apps.reservations.domain.schedule import BookingPeriod


@dataclass(frozen=True)
class Conflict:
    """The requested dates could not be committed for the vehicle."""
    vehicle_id: int
    reason: str
    dates: Optional[DateRange] = None
    conflicting_period_ids: List[int] = field(default_factory=list)

    UNAVAILABLE = 'unavailable'
    INVALID_RANGE = 'invalid_range'
    CONSTRAINT = 'constraint_violation'

    @property
    def message(self) -> str:
        if self.reason == self.INVALID_RANGE:
            return "The requested date range is invalid"
        return "The vehicle is not available for the selected dates"


@dataclass(frozen=True)
class CommitResult:
    booking_period: Optional[BookingPeriod] = None
    conflict: Optional[Conflict] = None

    @property
    def ok(self) -> bool:
        return self.booking_period is not None and self.conflict is None


@dataclass(frozen=True)
class ApprovalResult:
    """
    Outcome of an approval

    ``unavailable`` means the request stays PENDING; the administrator may
    retry later or decline it.
    """
    request: RentalRequest
    booking_period: Optional[BookingPeriod] = None
    conflict: Optional[Conflict] = None

    @property
    def approved(self) -> bool:
        return self.conflict is None and self.booking_period is not None

    @property
    def unavailable(self) -> bool:
        return self.conflict is not None
