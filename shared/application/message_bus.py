"""
Message Bus

Routes commands to their single handler and events to any number of
subscribers. Views talk to the application layer only through this bus.
"""

from typing import Dict, List, Callable, Type, Any
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Commands: one handler per command (1:1)
    Events: many handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug("Registered event handler for %s", event_type.__name__)

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any],
        replace: bool = False,
    ):
        """
        Register the handler for ``command_type``

        Registering a second handler is an error unless ``replace`` is set,
        which tests use to swap in doubles.
        """
        if command_type in self._command_handlers and not replace:
            raise ValueError(
                f"Handler for {command_type.__name__} is already registered. "
                "Commands can have only one handler."
            )
        self._command_handlers[command_type] = handler
        logger.debug("Registered command handler for %s", command_type.__name__)

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        command_type = type(command)
        handler = self._command_handlers.get(command_type)

        if not handler:
            raise ValueError(
                f"No handler registered for command {command_type.__name__}"
            )

        logger.info("Handling command: %s", command_type.__name__)
        try:
            return handler(command)
        except DomainError as e:
            logger.info("Command %s rejected: %s (%s)", command_type.__name__, e, e.code)
            raise
        except Exception as e:
            logger.error("Error handling command %s: %s", command_type.__name__, e)
            raise

    def publish_events(self, events: List[DomainEvent]):
        """
        Call every subscriber of every event

        A failing subscriber is logged and does not stop the others.
        """
        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.debug("No handlers registered for event %s", event_type.__name__)
                continue

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        "Error in event handler %s for event %s: %s",
                        getattr(handler, '__name__', repr(handler)), event_type.__name__, e,
                        exc_info=True,
                    )


message_bus = MessageBus()
