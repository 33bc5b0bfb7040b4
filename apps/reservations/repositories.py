"""ORM-backed repositories for the reservation aggregates.

Repositories translate between Django rows and the domain dataclasses and
own the locking decisions: ``lock=True`` issues ``SELECT ... FOR UPDATE``
when the surrounding code runs inside ``transaction.atomic()`` on a backend
that supports it.
"""

from __future__ import annotations

from typing import Optional

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.fleet.models import Vehicle
from shared.domain.value_objects import DateRange

from .domain.entities import RentalRequest, RequestStatus
from .domain.schedule import BookingPeriod, VehicleSchedule
from .models import BookingPeriod as BookingPeriodModel
from .models import RentalRequest as RentalRequestModel
from .models import overlap_q


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection(queryset.db).in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def period_to_domain(row: BookingPeriodModel, request_id: Optional[int] = None) -> BookingPeriod:
    return BookingPeriod(
        id=row.pk,
        vehicle_id=row.vehicle_id,
        dates=DateRange(row.start_date, row.end_date),
        request_id=request_id,
    )


def request_to_domain(row: RentalRequestModel) -> RentalRequest:
    return RentalRequest(
        id=row.pk,
        vehicle_id=row.vehicle_id,
        user_id=row.user_id,
        dates=DateRange(row.pick_up_date, row.return_date),
        status=RequestStatus(row.status),
        date_of_request=row.date_of_request,
        decided_at=row.decided_at,
        booking_period_id=row.booking_period_id,
    )


class VehicleScheduleRepository:
    """Loads and saves the booking periods of one vehicle."""

    def get_for_vehicle(
        self,
        vehicle_id: int,
        *,
        window: Optional[DateRange] = None,
        lock: bool = False,
    ) -> Optional[VehicleSchedule]:
        """
        Load the schedule, or ``None`` when the vehicle does not exist

        With ``lock=True`` the vehicle row is locked first, so every
        committer for that vehicle waits here until the current holder's
        transaction ends. With a ``window`` only the periods overlapping it
        are loaded.
        """
        vehicles = Vehicle.objects.filter(pk=vehicle_id)
        if lock:
            vehicles = _lock_queryset_if_possible(vehicles)
        if not list(vehicles.values_list("pk", flat=True)):
            return None

        periods = BookingPeriodModel.objects.filter(vehicle_id=vehicle_id)
        if window is not None:
            periods = periods.filter(overlap_q(window.start_date, window.end_date))

        return VehicleSchedule(
            vehicle_id=vehicle_id,
            periods=[period_to_domain(row) for row in periods.order_by("start_date")],
        )

    def save(self, schedule: VehicleSchedule) -> None:
        released_ids = [period.id for period in schedule.released_periods]
        if released_ids:
            BookingPeriodModel.objects.filter(vehicle_id=schedule.vehicle_id, pk__in=released_ids).delete()

        for period in schedule.new_periods:
            row = BookingPeriodModel.objects.create(
                vehicle_id=schedule.vehicle_id,
                start_date=period.start_date,
                end_date=period.end_date,
            )
            period.id = row.pk

        schedule.mark_persisted()


class RentalRequestRepository:

    def get_by_id(self, request_id, *, lock: bool = False) -> Optional[RentalRequest]:
        try:
            queryset = RentalRequestModel.objects.filter(pk=request_id)
            if lock:
                queryset = _lock_queryset_if_possible(queryset)
            row = queryset.get()
        except (RentalRequestModel.DoesNotExist, ValueError, TypeError):
            return None
        return request_to_domain(row)

    def add(self, rental_request: RentalRequest) -> RentalRequest:
        row = RentalRequestModel.objects.create(
            vehicle_id=rental_request.vehicle_id,
            user_id=rental_request.user_id,
            pick_up_date=rental_request.pick_up_date,
            return_date=rental_request.return_date,
            date_of_request=rental_request.date_of_request,
            status=rental_request.status.value,
        )
        rental_request.id = row.pk
        return rental_request

    def save(self, rental_request: RentalRequest) -> None:
        RentalRequestModel.objects.filter(pk=rental_request.id).update(
            vehicle_id=rental_request.vehicle_id,
            pick_up_date=rental_request.pick_up_date,
            return_date=rental_request.return_date,
            status=rental_request.status.value,
            decided_at=rental_request.decided_at,
            booking_period_id=rental_request.booking_period_id,
        )

    def delete(self, rental_request: RentalRequest) -> None:
        RentalRequestModel.objects.filter(pk=rental_request.id).delete()
