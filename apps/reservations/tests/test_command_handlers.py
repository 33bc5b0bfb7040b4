"""Tests for the reservation use cases, dispatched through the message bus."""

from __future__ import annotations

from datetime import date, timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from apps.reservations.application.command_handlers import (
    ApproveRequestCommand,
    CreateRequestCommand,
    DeclineRequestCommand,
    DeleteRequestCommand,
    RescheduleRequestCommand,
)
from apps.reservations.domain.entities import RequestStatus
from apps.reservations.domain.events import RequestApproved, RequestCreated
from apps.reservations.models import BookingPeriod, RentalRequest
from apps.reservations.services import is_available
from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    AlreadyTerminalError,
    InvalidRangeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from .factories import make_period, make_request, make_vehicle


def d(value: str) -> date:
    return date.fromisoformat(value)


class CreateRequestTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()
        self.today = timezone.localdate()

    def _create(self, start_offset: int, end_offset: int, vehicle_id=None):
        return message_bus.handle_command(CreateRequestCommand(
            user_id="17",
            vehicle_id=vehicle_id or self.vehicle.pk,
            pick_up_date=self.today + timedelta(days=start_offset),
            return_date=self.today + timedelta(days=end_offset),
        ))

    def test_creates_pending_request(self) -> None:
        rental_request = self._create(1, 4)

        row = RentalRequest.objects.get(pk=rental_request.id)
        self.assertEqual(row.status, RentalRequest.Status.PENDING)
        self.assertEqual(row.user_id, "17")
        self.assertEqual(row.rental_days, 3)
        self.assertFalse(BookingPeriod.objects.exists())

    def test_pick_up_today_is_allowed(self) -> None:
        self.assertIsNotNone(self._create(0, 1).id)

    def test_past_pick_up_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self._create(-1, 2)
        self.assertFalse(RentalRequest.objects.exists())

    def test_return_must_follow_pick_up(self) -> None:
        with self.assertRaises(InvalidRangeError):
            self._create(3, 3)

    def test_unknown_vehicle_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self._create(1, 2, vehicle_id=self.vehicle.pk + 1000)

    def test_overlapping_pending_requests_are_allowed(self) -> None:
        make_period(self.vehicle, str(self.today + timedelta(days=1)), str(self.today + timedelta(days=5)))
        self._create(1, 3)
        self._create(2, 4)
        self.assertEqual(RentalRequest.objects.count(), 2)

    def test_created_event_published_after_commit(self) -> None:
        published = []
        with mock.patch.object(message_bus, "publish_events", side_effect=published.extend):
            with self.captureOnCommitCallbacks(execute=True):
                rental_request = self._create(1, 2)

        self.assertIsInstance(published[0], RequestCreated)
        self.assertEqual(published[0].request_id, rental_request.id)


class ApproveRequestTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()

    def test_approve_books_period(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")

        result = message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))

        self.assertTrue(result.approved)
        self.assertIs(result.request.status, RequestStatus.APPROVED)
        row.refresh_from_db()
        self.assertEqual(row.status, RentalRequest.Status.APPROVED)
        self.assertIsNotNone(row.decided_at)
        self.assertEqual(row.booking_period_id, result.booking_period.id)
        self.assertEqual(
            (row.booking_period.start_date, row.booking_period.end_date),
            (d("2025-06-03"), d("2025-06-07")),
        )

    def test_conflict_leaves_request_pending(self) -> None:
        existing = make_period(self.vehicle, "2025-06-01", "2025-06-05")
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")

        result = message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))

        self.assertTrue(result.unavailable)
        self.assertEqual(result.conflict.conflicting_period_ids, [existing.pk])
        row.refresh_from_db()
        self.assertEqual(row.status, RentalRequest.Status.PENDING)
        self.assertIsNone(row.booking_period_id)
        self.assertIsNone(row.decided_at)
        self.assertEqual(BookingPeriod.objects.count(), 1)

    def test_competing_requests_only_one_approved(self) -> None:
        first = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="1")
        second = make_request(self.vehicle, "2025-06-05", "2025-06-09", user_id="2")

        approved = message_bus.handle_command(ApproveRequestCommand(request_id=first.pk))
        rejected = message_bus.handle_command(ApproveRequestCommand(request_id=second.pk))

        self.assertTrue(approved.approved)
        self.assertTrue(rejected.unavailable)
        self.assertEqual(rejected.conflict.conflicting_period_ids, [approved.booking_period.id])
        self.assertEqual(
            RentalRequest.objects.filter(status=RentalRequest.Status.APPROVED).count(), 1
        )

    def test_approve_twice_raises_already_terminal(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")
        message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))

        with self.assertRaises(AlreadyTerminalError):
            message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))
        self.assertEqual(BookingPeriod.objects.count(), 1)

    def test_approve_declined_request(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", status=RentalRequest.Status.DECLINED)

        with self.assertRaises(AlreadyTerminalError):
            message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))
        self.assertFalse(BookingPeriod.objects.exists())

    def test_unknown_request(self) -> None:
        with self.assertRaises(NotFoundError):
            message_bus.handle_command(ApproveRequestCommand(request_id=987654))

    def test_approved_event_published_after_commit(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")
        published = []
        with mock.patch.object(message_bus, "publish_events", side_effect=published.extend):
            with self.captureOnCommitCallbacks(execute=True):
                message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))

        approved = [event for event in published if isinstance(event, RequestApproved)]
        self.assertEqual(len(approved), 1)
        self.assertEqual(approved[0].request_id, row.pk)


class DeclineRequestTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()

    def test_decline_never_touches_periods(self) -> None:
        period = make_period(self.vehicle, "2025-06-01", "2025-06-05")
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")

        rental_request = message_bus.handle_command(DeclineRequestCommand(request_id=row.pk))

        self.assertIs(rental_request.status, RequestStatus.DECLINED)
        self.assertEqual(list(BookingPeriod.objects.values_list("pk", flat=True)), [period.pk])
        row.refresh_from_db()
        self.assertEqual(row.status, RentalRequest.Status.DECLINED)
        self.assertIsNotNone(row.decided_at)

    def test_decline_terminal_request(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07")
        message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))

        with self.assertRaises(AlreadyTerminalError):
            message_bus.handle_command(DeclineRequestCommand(request_id=row.pk))

        row.refresh_from_db()
        self.assertEqual(row.status, RentalRequest.Status.APPROVED)
        self.assertEqual(BookingPeriod.objects.count(), 1)


class DeleteRequestTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()

    def test_owner_deletes_pending_request(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="5")

        message_bus.handle_command(DeleteRequestCommand(request_id=row.pk, requested_by="5"))

        self.assertFalse(RentalRequest.objects.exists())

    def test_stranger_cannot_delete(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="5")

        with self.assertRaises(PermissionDeniedError):
            message_bus.handle_command(DeleteRequestCommand(request_id=row.pk, requested_by="6"))
        self.assertTrue(RentalRequest.objects.filter(pk=row.pk).exists())

    def test_administrator_deletes_any_request(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="5",
                           status=RentalRequest.Status.DECLINED)

        message_bus.handle_command(DeleteRequestCommand(request_id=row.pk, requested_by="1", is_administrator=True))

        self.assertFalse(RentalRequest.objects.exists())

    def test_deleting_approved_request_releases_dates(self) -> None:
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="5")
        message_bus.handle_command(ApproveRequestCommand(request_id=row.pk))
        self.assertFalse(is_available(self.vehicle.pk, d("2025-06-03"), d("2025-06-07")))

        message_bus.handle_command(DeleteRequestCommand(request_id=row.pk, requested_by="5"))

        self.assertFalse(BookingPeriod.objects.exists())
        self.assertTrue(is_available(self.vehicle.pk, d("2025-06-03"), d("2025-06-07")))

    def test_deleting_pending_request_keeps_other_periods(self) -> None:
        make_period(self.vehicle, "2025-06-01", "2025-06-05")
        row = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="5")

        message_bus.handle_command(DeleteRequestCommand(request_id=row.pk, requested_by="5"))

        self.assertEqual(BookingPeriod.objects.count(), 1)

    def test_unknown_request(self) -> None:
        with self.assertRaises(NotFoundError):
            message_bus.handle_command(DeleteRequestCommand(request_id=987654, requested_by="5"))


class RescheduleRequestTests(TestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()
        self.other = make_vehicle(model="Fabia")
        self.today = timezone.localdate()
        self.row = make_request(
            self.vehicle,
            str(self.today + timedelta(days=1)),
            str(self.today + timedelta(days=3)),
            user_id="5",
        )

    def _reschedule(self, requested_by="5", vehicle=None, start=2, end=6):
        return message_bus.handle_command(RescheduleRequestCommand(
            request_id=self.row.pk,
            requested_by=requested_by,
            vehicle_id=(vehicle or self.other).pk,
            pick_up_date=self.today + timedelta(days=start),
            return_date=self.today + timedelta(days=end),
        ))

    def test_owner_changes_vehicle_and_dates(self) -> None:
        self._reschedule()

        self.row.refresh_from_db()
        self.assertEqual(self.row.vehicle_id, self.other.pk)
        self.assertEqual(self.row.rental_days, 4)
        self.assertEqual(self.row.status, RentalRequest.Status.PENDING)

    def test_stranger_cannot_reschedule(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            self._reschedule(requested_by="6")

    def test_past_dates_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self._reschedule(start=-2, end=1)
        self.row.refresh_from_db()
        self.assertEqual(self.row.vehicle_id, self.vehicle.pk)

    def test_processed_request_cannot_change(self) -> None:
        message_bus.handle_command(DeclineRequestCommand(request_id=self.row.pk))
        with self.assertRaises(AlreadyTerminalError):
            self._reschedule()


class ConcreteScenarioTests(TestCase):
    """Vehicle V booked 2025-06-01..05 plus two competing requests on a fresh vehicle."""

    def test_availability_around_existing_booking(self) -> None:
        vehicle = make_vehicle()
        make_period(vehicle, "2025-06-01", "2025-06-05")

        self.assertTrue(is_available(vehicle.pk, d("2025-06-05"), d("2025-06-10")))
        self.assertFalse(is_available(vehicle.pk, d("2025-06-04"), d("2025-06-06")))

    def test_second_overlapping_approval_conflicts(self) -> None:
        vehicle = make_vehicle(model="Superb")
        r1 = make_request(vehicle, "2025-06-03", "2025-06-07", user_id="1")
        r2 = make_request(vehicle, "2025-06-05", "2025-06-09", user_id="2")

        first = message_bus.handle_command(ApproveRequestCommand(request_id=r1.pk))
        self.assertTrue(first.approved)
        self.assertEqual(
            (first.booking_period.start_date, first.booking_period.end_date),
            (d("2025-06-03"), d("2025-06-07")),
        )

        second = message_bus.handle_command(ApproveRequestCommand(request_id=r2.pk))
        self.assertTrue(second.unavailable)
        r2.refresh_from_db()
        self.assertEqual(r2.status, RentalRequest.Status.PENDING)
