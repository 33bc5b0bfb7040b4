"""Availability checks and the reservation committer."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction  # type: ignore
from django.db.models import Exists, OuterRef  # type: ignore

from apps.fleet.models import Vehicle
from shared.domain.exceptions import InvalidRangeError, NotFoundError, StorageError
from shared.domain.value_objects import DateRange

from .application.results import CommitResult, Conflict
from .models import BookingPeriod, overlap_q
from .repositories import VehicleScheduleRepository

logger = logging.getLogger(__name__)


def _as_range(start: date, end: date) -> DateRange:
    if isinstance(start, DateRange):
        return start
    return DateRange(start, end)


def is_available(vehicle_id, start: date, end: date) -> bool:
    """True iff no booking period of the vehicle overlaps ``[start, end)``.

    Raises ``InvalidRangeError`` unless ``start < end``. Read-only.
    """

    dates = _as_range(start, end)
    return not BookingPeriod.objects.filter(vehicle_id=vehicle_id).filter(
        overlap_q(dates.start_date, dates.end_date)
    ).exists()


def conflicting_periods(vehicle_id, start: date, end: date) -> List[BookingPeriod]:
    """Booking periods that make ``[start, end)`` unavailable for the vehicle."""

    dates = _as_range(start, end)
    return list(
        BookingPeriod.objects.filter(vehicle_id=vehicle_id)
        .filter(overlap_q(dates.start_date, dates.end_date))
        .order_by("start_date")
    )


def available_vehicles(start: date, end: date):
    """Vehicles with no booking period overlapping ``[start, end)``."""

    dates = _as_range(start, end)
    busy = BookingPeriod.objects.filter(vehicle=OuterRef("pk")).filter(
        overlap_q(dates.start_date, dates.end_date)
    )
    return Vehicle.objects.filter(~Exists(busy))


def list_available_vehicles(start: date, end: date) -> List[int]:
    return list(available_vehicles(start, end).values_list("pk", flat=True))


class ReservationCommitter:
    """Creates a booking period only if the vehicle is still free.

    The re-check and the insert run in one savepoint while the vehicle row is
    locked, so concurrent committers for a vehicle are serialized. On
    PostgreSQL the exclusion constraint is a second line of defence; its
    violation is reported as a conflict as well.
    """

    def __init__(self, schedule_repo: Optional[VehicleScheduleRepository] = None):
        self.schedule_repo = schedule_repo or VehicleScheduleRepository()

    def commit(self, vehicle_id, start: date, end: date = None, *, request_id=None, uow=None) -> CommitResult:
        try:
            dates = _as_range(start, end)
        except InvalidRangeError:
            logger.info("Rejected commit for vehicle %s: invalid range %s - %s", vehicle_id, start, end)
            return CommitResult(conflict=Conflict(vehicle_id=vehicle_id, reason=Conflict.INVALID_RANGE))

        try:
            with transaction.atomic():
                schedule = self.schedule_repo.get_for_vehicle(vehicle_id, window=dates, lock=True)
                if schedule is None:
                    raise NotFoundError(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)

                if not schedule.can_book(dates):
                    overlapping = schedule.conflicts_with(dates)
                    logger.info(
                        "Vehicle %s unavailable for %s, overlaps %s",
                        vehicle_id, dates, [p.id for p in overlapping],
                    )
                    return CommitResult(conflict=Conflict(
                        vehicle_id=vehicle_id,
                        reason=Conflict.UNAVAILABLE,
                        dates=dates,
                        conflicting_period_ids=[p.id for p in overlapping],
                    ))

                period = schedule.book(dates, request_id=request_id)
                self.schedule_repo.save(schedule)
        except IntegrityError as exc:
            logger.warning("Storage rejected overlapping period for vehicle %s %s: %s", vehicle_id, dates, exc)
            return CommitResult(conflict=Conflict(
                vehicle_id=vehicle_id,
                reason=Conflict.CONSTRAINT,
                dates=dates,
            ))
        except DatabaseError as exc:
            logger.error("Storage failure while booking vehicle %s %s", vehicle_id, dates, exc_info=True)
            raise StorageError("Could not store the booking period, please retry") from exc

        if uow is not None:
            uow.collect_events(schedule)
        logger.info("Booked vehicle %s for %s as period %s", vehicle_id, dates, period.id)
        return CommitResult(booking_period=period)


def release_booking_period(vehicle_id, booking_period_id, *, uow=None, schedule_repo=None) -> None:
    """Delete a committed period, used when an approved request is deleted."""

    schedule_repo = schedule_repo or VehicleScheduleRepository()
    with transaction.atomic():
        schedule = schedule_repo.get_for_vehicle(vehicle_id, lock=True)
        if schedule is None or schedule.get_period(booking_period_id) is None:
            logger.warning("Booking period %s of vehicle %s already gone", booking_period_id, vehicle_id)
            return
        schedule.release(booking_period_id)
        schedule_repo.save(schedule)
    if uow is not None:
        uow.collect_events(schedule)
