"""
Unit of Work Pattern

Wraps a database transaction and publishes the domain events collected
inside it only after the transaction has committed.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import DatabaseError, transaction

from shared.domain.base import DomainEvent
from shared.domain.exceptions import StorageError

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            rental_request = request_repo.get_by_id(request_id, lock=True)
            rental_request.decline()
            uow.collect_events(rental_request)
            request_repo.save(rental_request)
        # transaction committed, events published

    A ``DatabaseError`` escaping the block rolls the transaction back and is
    re-raised as ``StorageError`` so callers never see a half-written state
    or a driver-specific exception.
    """

    def __init__(self, using=None):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic(using=using)
        self._using = using

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

        try:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        except DatabaseError as exc:
            # The commit itself failed (serialization failure, lost connection).
            logger.error("Transaction commit failed: %s", exc, exc_info=True)
            raise StorageError("Could not commit the transaction, please retry") from exc

        if isinstance(exc_val, DatabaseError):
            logger.error("Transaction aborted by database error: %s", exc_val, exc_info=exc_val)
            raise StorageError("The storage layer rejected the operation, please retry") from exc_val
        return False

    def commit(self):
        """Schedule publication of the collected events for after the commit."""
        events = self._events.copy()
        self._events.clear()
        logger.debug("Committing unit of work with %d events", len(events))

        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def rollback(self):
        if self._events:
            logger.warning("Rolling back, discarding %d events", len(self._events))
        self._events.clear()

    def collect_events(self, aggregate):
        """Move the pending events of ``aggregate`` into this unit of work."""
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                "Collected %d events from %s (ID: %s)",
                len(new_events), aggregate.__class__.__name__, aggregate.id,
            )

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info("Publishing %d domain events after commit", len(events))
        try:
            message_bus.publish_events(events)
        except Exception as e:
            # The data is committed; a failed fan-out must not turn into an API error.
            logger.error("Error publishing events: %s", e, exc_info=True)
