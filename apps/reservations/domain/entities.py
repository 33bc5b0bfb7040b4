"""
Reservation Domain Entities

- RentalRequest: a user's proposal to rent a vehicle over a date range
- RequestStatus: FSM states of the approval workflow
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from django.utils import timezone

from shared.domain.base import Aggregate
from shared.domain.exceptions import AlreadyTerminalError, ValidationError
from shared.domain.value_objects import DateRange, Money


class RequestStatus(Enum):
    """
    Rental Request Status Finite State Machine

    State transitions:
    - PENDING -> APPROVED (administrator approved, booking period committed)
    - PENDING -> DECLINED (administrator declined)

    APPROVED and DECLINED are terminal.
    """
    PENDING = 'pending'
    APPROVED = 'approved'
    DECLINED = 'declined'

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


@dataclass(eq=False, kw_only=True)
class RentalRequest(Aggregate):
    """
    Rental Request Aggregate Root

    Key invariants:
    - pick_up_date < return_date (enforced by DateRange)
    - pick_up_date is not in the past when the request is opened
    - exactly one transition out of PENDING

    Overlapping pending requests for one vehicle are allowed; only approval
    checks availability.
    """
    vehicle_id: int
    user_id: str
    dates: DateRange
    status: RequestStatus = RequestStatus.PENDING
    date_of_request: datetime = field(default_factory=timezone.now)
    decided_at: Optional[datetime] = None
    booking_period_id: Optional[int] = None

    @classmethod
    def open(cls, *, vehicle_id: int, user_id: str, pick_up_date: date, return_date: date,
             today: Optional[date] = None) -> 'RentalRequest':
        """Validate the proposal and create a PENDING request."""
        dates = cls.validate_dates(pick_up_date, return_date, today=today)
        if not user_id:
            raise ValidationError("A request must belong to a user")
        return cls(vehicle_id=vehicle_id, user_id=str(user_id), dates=dates)

    @staticmethod
    def validate_dates(pick_up_date: date, return_date: date, today: Optional[date] = None) -> DateRange:
        today = today or timezone.localdate()
        if pick_up_date is not None and pick_up_date < today:
            raise ValidationError(
                "Pick-up date cannot be in the past",
                pick_up_date=pick_up_date,
            )
        return DateRange(pick_up_date, return_date)

    @property
    def pick_up_date(self) -> date:
        return self.dates.start_date

    @property
    def return_date(self) -> date:
        return self.dates.end_date

    @property
    def rental_days(self) -> int:
        return len(self.dates)

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def quote(self, price_per_day: Decimal, currency: str) -> Money:
        return Money(Decimal(price_per_day), currency) * self.rental_days

    def ensure_pending(self, action: str):
        if self.is_terminal:
            raise AlreadyTerminalError(
                f"Cannot {action} request {self.id}: it is already {self.status.value}",
                request_id=self.id,
                status=self.status.value,
            )

    def approve(self, booking_period_id: int):
        """
        PENDING -> APPROVED

        Only called once the booking period has been committed.
        Events: RequestApproved
        """
        self.ensure_pending("approve")

        from apps.reservations.domain.events import RequestApproved

        self.status = RequestStatus.APPROVED
        self.booking_period_id = booking_period_id
        self.decided_at = timezone.now()

        self.add_event(RequestApproved(
            aggregate_id=self.id,
            request_id=self.id,
            vehicle_id=self.vehicle_id,
            user_id=self.user_id,
            booking_period_id=booking_period_id,
            pick_up_date=self.pick_up_date,
            return_date=self.return_date,
        ))

    def decline(self):
        """
        PENDING -> DECLINED

        Events: RequestDeclined
        """
        self.ensure_pending("decline")

        from apps.reservations.domain.events import RequestDeclined

        self.status = RequestStatus.DECLINED
        self.decided_at = timezone.now()

        self.add_event(RequestDeclined(
            aggregate_id=self.id,
            request_id=self.id,
            vehicle_id=self.vehicle_id,
            user_id=self.user_id,
            pick_up_date=self.pick_up_date,
            return_date=self.return_date,
        ))

    def reschedule(self, vehicle_id: int, pick_up_date: date, return_date: date,
                   today: Optional[date] = None):
        """Change vehicle and dates of a request that is still PENDING."""
        self.ensure_pending("reschedule")
        self.dates = self.validate_dates(pick_up_date, return_date, today=today)
        self.vehicle_id = vehicle_id

        from apps.reservations.domain.events import RequestRescheduled

        self.add_event(RequestRescheduled(
            aggregate_id=self.id,
            request_id=self.id,
            vehicle_id=self.vehicle_id,
            pick_up_date=self.pick_up_date,
            return_date=self.return_date,
        ))

    def remove(self, released_booking_period_id: Optional[int] = None):
        """Record the deletion; allowed in every state."""
        from apps.reservations.domain.events import RequestDeleted

        self.add_event(RequestDeleted(
            aggregate_id=self.id,
            request_id=self.id,
            vehicle_id=self.vehicle_id,
            user_id=self.user_id,
            status=self.status.value,
            released_booking_period_id=released_booking_period_id,
        ))

    def is_owned_by(self, user_id) -> bool:
        return user_id is not None and str(user_id) == self.user_id

    def __str__(self):
        return f"RentalRequest {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"RentalRequest(id={self.id}, vehicle_id={self.vehicle_id}, "
            f"status={self.status.value}, dates={self.dates})"
        )
