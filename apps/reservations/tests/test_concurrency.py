"""Competing approvals on real connections.

Each worker thread opens its own connection. PostgreSQL serializes them on
the vehicle row lock; SQLite takes the database lock at BEGIN. The
exclusion constraint only exists on PostgreSQL.
"""

from __future__ import annotations

import threading
from datetime import date

from django.db import IntegrityError, connection, connections, transaction
from django.test import TransactionTestCase

from apps.reservations.application.command_handlers import ApproveRequestCommand
from apps.reservations.models import BookingPeriod, RentalRequest
from shared.application.message_bus import message_bus

from .factories import make_request, make_vehicle


def _run_concurrently(*commands):
    barrier = threading.Barrier(len(commands))
    results, errors = [], []

    def worker(command):
        try:
            barrier.wait()
            results.append(message_bus.handle_command(command))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker, args=(command,)) for command in commands]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results, errors


class CompetingApprovalTests(TransactionTestCase):
    def setUp(self) -> None:
        self.vehicle = make_vehicle()

    def test_sqlite_writers_lock_at_begin(self) -> None:
        if connection.vendor != "sqlite":
            self.skipTest("SQLite only")
        self.assertEqual(connection.settings_dict["OPTIONS"].get("transaction_mode"), "IMMEDIATE")

    def test_overlapping_pair_one_approved_other_unavailable(self) -> None:
        first = make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="1")
        second = make_request(self.vehicle, "2025-06-05", "2025-06-09", user_id="2")

        for _ in range(5):
            RentalRequest.objects.update(status=RentalRequest.Status.PENDING, booking_period=None, decided_at=None)
            BookingPeriod.objects.all().delete()

            results, errors = _run_concurrently(
                ApproveRequestCommand(request_id=first.pk),
                ApproveRequestCommand(request_id=second.pk),
            )

            self.assertEqual(errors, [])
            self.assertEqual(sum(1 for result in results if result.approved), 1)
            self.assertEqual(sum(1 for result in results if result.unavailable), 1)
            self.assertEqual(BookingPeriod.objects.filter(vehicle=self.vehicle).count(), 1)
            self.assertEqual(RentalRequest.objects.filter(status=RentalRequest.Status.PENDING).count(), 1)

    def test_only_one_of_overlapping_requests_is_approved(self) -> None:
        requests = [
            make_request(self.vehicle, "2025-06-03", "2025-06-07", user_id="1"),
            make_request(self.vehicle, "2025-06-05", "2025-06-09", user_id="2"),
            make_request(self.vehicle, "2025-06-06", "2025-06-08", user_id="3"),
        ]

        results, errors = _run_concurrently(*[ApproveRequestCommand(request_id=r.pk) for r in requests])

        self.assertEqual(errors, [])
        self.assertEqual(sum(1 for result in results if result.approved), 1)
        self.assertEqual(sum(1 for result in results if result.unavailable), 2)
        self.assertEqual(BookingPeriod.objects.filter(vehicle=self.vehicle).count(), 1)
        self.assertEqual(RentalRequest.objects.filter(status=RentalRequest.Status.PENDING).count(), 2)

    def test_same_request_approved_once(self) -> None:
        rental_request = make_request(self.vehicle, "2025-06-03", "2025-06-07")

        results, errors = _run_concurrently(
            ApproveRequestCommand(request_id=rental_request.pk),
            ApproveRequestCommand(request_id=rental_request.pk),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].code, "already_terminal")
        self.assertEqual(BookingPeriod.objects.count(), 1)


class ExclusionConstraintTests(TransactionTestCase):
    def setUp(self) -> None:
        if connection.vendor != "postgresql":
            self.skipTest("needs PostgreSQL")
        self.vehicle = make_vehicle()

    def test_exclusion_constraint_rejects_overlap(self) -> None:
        BookingPeriod.objects.create(vehicle=self.vehicle, start_date=date(2025, 6, 1), end_date=date(2025, 6, 5))

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                BookingPeriod.objects.create(
                    vehicle=self.vehicle, start_date=date(2025, 6, 4), end_date=date(2025, 6, 6)
                )

        BookingPeriod.objects.create(vehicle=self.vehicle, start_date=date(2025, 6, 5), end_date=date(2025, 6, 6))
        self.assertEqual(BookingPeriod.objects.count(), 2)
