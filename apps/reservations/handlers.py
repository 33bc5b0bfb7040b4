"""Subscribers for reservation domain events.

They run after the producing transaction has committed.
"""

import logging

from django.conf import settings  # type: ignore

from .domain import events

logger = logging.getLogger(__name__)


def log_event(event):
    logger.info("Domain event %s", type(event).__name__, extra={"domain_event": event.to_dict()})


def queue_decision_notification(event):
    if not getattr(settings, "RESERVATIONS_NOTIFY_REQUESTER", False):
        return

    from .tasks import notify_request_decision

    notify_request_decision.delay(event.request_id)


EVENT_HANDLERS = {
    events.RequestCreated: [log_event],
    events.RequestRescheduled: [log_event],
    events.RequestApproved: [log_event, queue_decision_notification],
    events.RequestDeclined: [log_event, queue_decision_notification],
    events.RequestDeleted: [log_event],
    events.PeriodBooked: [log_event],
    events.PeriodReleased: [log_event],
}


def register_handlers(bus):
    for event_type, handlers in EVENT_HANDLERS.items():
        for handler in handlers:
            bus.register_event_handler(event_type, handler)
