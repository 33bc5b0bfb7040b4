"""
Reservation Command Handlers

These are the use cases of the reservation core.
They orchestrate domain operations within transactions.

Commands:
- CreateRequestCommand: Open a pending rental request
- ApproveRequestCommand: Commit the dates and approve a request
- DeclineRequestCommand: Decline a pending request
- DeleteRequestCommand: Remove a request (owner or administrator)
- RescheduleRequestCommand: Change vehicle or dates of a pending request
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
import logging

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.fleet.services import vehicle_exists
from apps.reservations.application.results import ApprovalResult
from apps.reservations.domain.entities import RentalRequest, RequestStatus
from apps.reservations.domain.events import RequestCreated
from apps.reservations.repositories import RentalRequestRepository, VehicleScheduleRepository
from apps.reservations.services import ReservationCommitter, release_booking_period

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateRequestCommand:
    """Command to open a new rental request; no availability check is made."""
    user_id: str
    vehicle_id: int
    pick_up_date: date
    return_date: date


@dataclass
class ApproveRequestCommand:
    request_id: int


@dataclass
class DeclineRequestCommand:
    request_id: int


@dataclass
class DeleteRequestCommand:
    request_id: int
    requested_by: str
    is_administrator: bool = False


@dataclass
class RescheduleRequestCommand:
    """Command to edit a pending request owned by the caller"""
    request_id: int
    requested_by: str
    vehicle_id: int
    pick_up_date: date
    return_date: date
    is_administrator: bool = False


# ===== Command Handlers =====

def _ensure_vehicle(vehicle_id):
    if not vehicle_exists(vehicle_id):
        raise ValidationError(f"Vehicle {vehicle_id} does not exist", vehicle_id=vehicle_id)


def _load(request_repo, request_id, lock=True) -> RentalRequest:
    rental_request = request_repo.get_by_id(request_id, lock=lock)
    if rental_request is None:
        raise NotFoundError(f"Rental request {request_id} not found", request_id=request_id)
    return rental_request


class CreateRequestHandler:

    def __init__(self, request_repo=None):
        self.request_repo = request_repo or RentalRequestRepository()

    def handle(self, command: CreateRequestCommand) -> RentalRequest:
        """
        Validate and store a PENDING request

        Raises:
            ValidationError: past pick-up date, bad range or unknown vehicle
        """
        logger.info(
            "Creating rental request for vehicle %s, user %s, dates %s - %s",
            command.vehicle_id, command.user_id, command.pick_up_date, command.return_date,
        )

        rental_request = RentalRequest.open(
            vehicle_id=command.vehicle_id,
            user_id=command.user_id,
            pick_up_date=command.pick_up_date,
            return_date=command.return_date,
        )
        _ensure_vehicle(command.vehicle_id)

        with DjangoUnitOfWork() as uow:
            self.request_repo.add(rental_request)

            rental_request.add_event(RequestCreated(
                aggregate_id=rental_request.id,
                request_id=rental_request.id,
                vehicle_id=rental_request.vehicle_id,
                user_id=rental_request.user_id,
                pick_up_date=rental_request.pick_up_date,
                return_date=rental_request.return_date,
            ))
            uow.collect_events(rental_request)

        logger.info("Rental request %s created", rental_request.id)
        return rental_request


class ApproveRequestHandler:
    """
    Handler for ApproveRequest command

    Strategy:
    1. Start database transaction (atomic)
    2. Lock the request row so it transitions once
    3. Commit the dates through the ReservationCommitter, which locks the
       vehicle row and re-checks availability
    4. On conflict leave the request PENDING and report it
    5. Otherwise approve, save and publish events after commit
    """

    def __init__(self, request_repo=None, committer: Optional[ReservationCommitter] = None):
        self.request_repo = request_repo or RentalRequestRepository()
        self.committer = committer or ReservationCommitter()

    def handle(self, command: ApproveRequestCommand) -> ApprovalResult:
        logger.info("Approving rental request %s", command.request_id)

        with DjangoUnitOfWork() as uow:
            rental_request = _load(self.request_repo, command.request_id)
            rental_request.ensure_pending("approve")

            result = self.committer.commit(
                rental_request.vehicle_id,
                rental_request.dates,
                request_id=rental_request.id,
                uow=uow,
            )
            if not result.ok:
                logger.info(
                    "Rental request %s stays pending: %s",
                    rental_request.id, result.conflict.reason,
                )
                return ApprovalResult(request=rental_request, conflict=result.conflict)

            rental_request.approve(result.booking_period.id)
            uow.collect_events(rental_request)
            self.request_repo.save(rental_request)

        logger.info(
            "Rental request %s approved with booking period %s",
            rental_request.id, result.booking_period.id,
        )
        return ApprovalResult(request=rental_request, booking_period=result.booking_period)


class DeclineRequestHandler:
    """Declining never creates or removes a booking period."""

    def __init__(self, request_repo=None):
        self.request_repo = request_repo or RentalRequestRepository()

    def handle(self, command: DeclineRequestCommand) -> RentalRequest:
        logger.info("Declining rental request %s", command.request_id)

        with DjangoUnitOfWork() as uow:
            rental_request = _load(self.request_repo, command.request_id)
            rental_request.decline()

            uow.collect_events(rental_request)
            self.request_repo.save(rental_request)

        logger.info("Rental request %s declined", rental_request.id)
        return rental_request


class DeleteRequestHandler:
    """
    Handler for DeleteRequest command

    Deleting an APPROVED request also releases its booking period in the
    same transaction.
    """

    def __init__(self, request_repo=None, schedule_repo=None):
        self.request_repo = request_repo or RentalRequestRepository()
        self.schedule_repo = schedule_repo or VehicleScheduleRepository()

    def handle(self, command: DeleteRequestCommand) -> None:
        logger.info("Deleting rental request %s by %s", command.request_id, command.requested_by)

        with DjangoUnitOfWork() as uow:
            rental_request = _load(self.request_repo, command.request_id)
            if not (command.is_administrator or rental_request.is_owned_by(command.requested_by)):
                raise PermissionDeniedError(
                    "Only the owner or an administrator can delete a request",
                    request_id=rental_request.id,
                )

            released = None
            if rental_request.status is RequestStatus.APPROVED and rental_request.booking_period_id:
                released = rental_request.booking_period_id
                self.request_repo.delete(rental_request)
                release_booking_period(
                    rental_request.vehicle_id,
                    released,
                    uow=uow,
                    schedule_repo=self.schedule_repo,
                )
            else:
                self.request_repo.delete(rental_request)

            rental_request.remove(released_booking_period_id=released)
            uow.collect_events(rental_request)

        logger.info("Rental request %s deleted", command.request_id)


class RescheduleRequestHandler:

    def __init__(self, request_repo=None):
        self.request_repo = request_repo or RentalRequestRepository()

    def handle(self, command: RescheduleRequestCommand) -> RentalRequest:
        """Same validation as creation; only PENDING requests can change."""
        logger.info(
            "Rescheduling rental request %s to vehicle %s, dates %s - %s",
            command.request_id, command.vehicle_id, command.pick_up_date, command.return_date,
        )

        with DjangoUnitOfWork() as uow:
            rental_request = _load(self.request_repo, command.request_id)
            if not (command.is_administrator or rental_request.is_owned_by(command.requested_by)):
                raise PermissionDeniedError(
                    "Only the owner can edit a request",
                    request_id=rental_request.id,
                )

            rental_request.reschedule(command.vehicle_id, command.pick_up_date, command.return_date)
            _ensure_vehicle(command.vehicle_id)

            uow.collect_events(rental_request)
            self.request_repo.save(rental_request)

        logger.info("Rental request %s rescheduled", rental_request.id)
        return rental_request


def register_handlers(bus):
    """Wire the reservation use cases into ``bus``; safe to call twice."""
    handlers = {
        CreateRequestCommand: CreateRequestHandler(),
        ApproveRequestCommand: ApproveRequestHandler(),
        DeclineRequestCommand: DeclineRequestHandler(),
        DeleteRequestCommand: DeleteRequestHandler(),
        RescheduleRequestCommand: RescheduleRequestHandler(),
    }
    for command_type, handler in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler.handle)
