"""
Vehicle Schedule Aggregate

All booking periods of a vehicle go through this aggregate; it is the
consistency boundary that keeps committed periods from overlapping.

Strategy (defense in depth):
1. Domain validation: can_book() checks the half-open overlap predicate
2. Pessimistic locking: the repository locks the vehicle row (SELECT FOR UPDATE)
3. Database constraint: PostgreSQL EXCLUDE constraint on booking periods
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from shared.domain.base import Aggregate, Entity
from shared.domain.exceptions import NotFoundError, ValidationError
from shared.domain.value_objects import DateRange


def overlaps(dates: DateRange, periods: Iterable['BookingPeriod']) -> List['BookingPeriod']:
    """Periods whose range overlaps ``dates``. Touching endpoints do not count."""
    return [period for period in periods if period.dates.overlaps_with(dates)]


def is_free(dates: DateRange, periods: Iterable['BookingPeriod']) -> bool:
    return not any(period.dates.overlaps_with(dates) for period in periods)


@dataclass(eq=False, kw_only=True)
class BookingPeriod(Entity):
    """
    A committed reservation of a vehicle over ``[start_date, end_date)``

    Immutable once created; only the Reservation Committer creates one.
    """
    vehicle_id: int
    dates: DateRange
    request_id: Optional[int] = None

    @property
    def start_date(self):
        return self.dates.start_date

    @property
    def end_date(self):
        return self.dates.end_date

    def __repr__(self):
        return f"BookingPeriod(id={self.id}, vehicle_id={self.vehicle_id}, dates={self.dates})"


@dataclass(eq=False, kw_only=True)
class VehicleSchedule(Aggregate):
    """
    Schedule Aggregate Root

    Holds the booking periods of one vehicle. A repository may load only the
    periods that intersect a window; the overlap check is still exact for any
    range inside that window.

    Usage:
        schedule = schedule_repo.get_for_vehicle(vehicle_id, window=dates, lock=True)
        if schedule.can_book(dates):
            period = schedule.book(dates, request_id=request_id)
            schedule_repo.save(schedule)
    """
    vehicle_id: int
    periods: List[BookingPeriod] = field(default_factory=list)
    _new_periods: List[BookingPeriod] = field(default_factory=list, repr=False, init=False)
    _released_periods: List[BookingPeriod] = field(default_factory=list, repr=False, init=False)

    def __post_init__(self):
        self.id = self.vehicle_id

    def can_book(self, dates: DateRange) -> bool:
        return is_free(dates, self.periods)

    def conflicts_with(self, dates: DateRange) -> List[BookingPeriod]:
        return overlaps(dates, self.periods)

    def book(self, dates: DateRange, request_id: Optional[int] = None) -> BookingPeriod:
        """
        Reserve ``dates`` for the vehicle

        Raises:
            ValidationError: if ``dates`` overlap an existing period
        """
        conflicting = self.conflicts_with(dates)
        if conflicting:
            raise ValidationError(
                f"Dates {dates} are not available for vehicle {self.vehicle_id}; "
                f"overlaps period {conflicting[0].id}",
                vehicle_id=self.vehicle_id,
                conflicting_period_ids=[p.id for p in conflicting],
            )

        period = BookingPeriod(vehicle_id=self.vehicle_id, dates=dates, request_id=request_id)
        self.periods.append(period)
        self._new_periods.append(period)
        return period

    def release(self, booking_period_id: int) -> BookingPeriod:
        period = self.get_period(booking_period_id)
        if period is None:
            raise NotFoundError(
                f"Booking period {booking_period_id} not found for vehicle {self.vehicle_id}",
                booking_period_id=booking_period_id,
            )

        self.periods.remove(period)
        self._released_periods.append(period)

        from apps.reservations.domain.events import PeriodReleased

        self.add_event(PeriodReleased(
            aggregate_id=self.id,
            vehicle_id=self.vehicle_id,
            booking_period_id=period.id,
            start_date=period.start_date,
            end_date=period.end_date,
        ))
        return period

    def get_period(self, booking_period_id: int) -> Optional[BookingPeriod]:
        return next((p for p in self.periods if p.id == booking_period_id), None)

    @property
    def new_periods(self) -> List[BookingPeriod]:
        return self._new_periods.copy()

    @property
    def released_periods(self) -> List[BookingPeriod]:
        return self._released_periods.copy()

    def mark_persisted(self):
        """
        Called by the repository once pending changes are written

        New periods have their database ids at this point, so this is where
        ``PeriodBooked`` is emitted.
        """
        from apps.reservations.domain.events import PeriodBooked

        for period in self._new_periods:
            self.add_event(PeriodBooked(
                aggregate_id=self.id,
                vehicle_id=self.vehicle_id,
                booking_period_id=period.id,
                request_id=period.request_id,
                start_date=period.start_date,
                end_date=period.end_date,
            ))
        self._new_periods.clear()
        self._released_periods.clear()

    def __str__(self):
        return f"VehicleSchedule(vehicle={self.vehicle_id}, periods={len(self.periods)})"
