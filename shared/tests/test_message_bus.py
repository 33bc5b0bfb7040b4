"""Tests for the message bus and the unit of work."""

from __future__ import annotations

from dataclasses import dataclass
from unittest import mock

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import Aggregate, DomainEvent
from shared.domain.exceptions import NotFoundError, StorageError


@dataclass
class Ping:
    value: int


@dataclass(kw_only=True)
class Pinged(DomainEvent):
    value: int


@dataclass(eq=False, kw_only=True)
class Counter(Aggregate):
    hits: int = 0


class MessageBusTests(SimpleTestCase):
    def setUp(self) -> None:
        self.bus = MessageBus()

    def test_command_routed_to_its_handler(self) -> None:
        self.bus.register_command_handler(Ping, lambda command: command.value * 2)
        self.assertEqual(self.bus.handle_command(Ping(21)), 42)

    def test_one_handler_per_command(self) -> None:
        self.bus.register_command_handler(Ping, lambda command: 1)
        with self.assertRaises(ValueError):
            self.bus.register_command_handler(Ping, lambda command: 2)

        self.bus.register_command_handler(Ping, lambda command: 3, replace=True)
        self.assertEqual(self.bus.handle_command(Ping(0)), 3)

    def test_unregistered_command(self) -> None:
        with self.assertRaises(ValueError):
            self.bus.handle_command(Ping(1))

    def test_domain_errors_propagate(self) -> None:
        def handler(command):
            raise NotFoundError("missing")

        self.bus.register_command_handler(Ping, handler)
        with self.assertRaises(NotFoundError):
            self.bus.handle_command(Ping(1))

    def test_failing_subscriber_does_not_stop_others(self) -> None:
        seen = []
        self.bus.register_event_handler(Pinged, mock.Mock(side_effect=RuntimeError("boom")))
        self.bus.register_event_handler(Pinged, seen.append)

        self.bus.publish_events([Pinged(value=1)])

        self.assertEqual([event.value for event in seen], [1])

    def test_event_payload_in_dict(self) -> None:
        payload = Pinged(aggregate_id=3, value=7).to_dict()
        self.assertEqual(payload["event_type"], "Pinged")
        self.assertEqual(payload["value"], 7)
        self.assertEqual(payload["aggregate_id"], 3)


class UnitOfWorkTests(TestCase):
    def _counter_with_event(self) -> Counter:
        counter = Counter(id=1)
        counter.add_event(Pinged(aggregate_id=1, value=5))
        return counter

    def test_events_published_only_after_commit(self) -> None:
        with mock.patch("shared.application.message_bus.message_bus.publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True):
                with DjangoUnitOfWork() as uow:
                    counter = self._counter_with_event()
                    uow.collect_events(counter)
                    self.assertEqual(counter.events, [])
                    publish.assert_not_called()

        [events] = publish.call_args.args
        self.assertEqual([event.value for event in events], [5])

    def test_rollback_discards_events(self) -> None:
        with mock.patch("shared.application.message_bus.message_bus.publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(NotFoundError):
                    with DjangoUnitOfWork() as uow:
                        uow.collect_events(self._counter_with_event())
                        raise NotFoundError("gone")

        self.assertEqual(callbacks, [])
        publish.assert_not_called()

    def test_database_error_becomes_storage_error(self) -> None:
        with self.assertRaises(StorageError) as ctx:
            with DjangoUnitOfWork():
                raise DatabaseError("deadlock detected")
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
