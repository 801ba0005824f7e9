"""
Message Bus

Routes commands from the REST layer and the sweeper to exactly one
handler, and published events to any number of subscribers.
"""

from typing import Dict, List, Callable, Type, Any
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None]):
        """Subscribe ``handler`` to ``event_type``; subscribing twice is a no-op."""
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Registered event handler for {event_type.__name__}")

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"Handler for {command_type.__name__} is already registered")
        self._command_handlers[command_type] = handler
        logger.debug(f"Registered command handler for {command_type.__name__}")

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        """Run the handler for ``command`` and return its result.

        Allocation errors raised by the handler propagate to the caller.
        """
        command_type = type(command)
        handler = self._command_handlers.get(command_type)
        if not handler:
            raise ValueError(f"No handler registered for command {command_type.__name__}")

        logger.info(f"Handling command: {command_type.__name__}")
        try:
            result = handler(command)
            logger.debug(f"Command {command_type.__name__} handled successfully")
            return result
        except Exception as e:
            logger.info(f"Command {command_type.__name__} rejected: {e}")
            raise

    def publish_events(self, events: List[DomainEvent]):
        """Deliver ``events`` to their subscribers.

        A failing subscriber is logged; the remaining subscribers still run.
        """
        for event in events:
            handlers = list(self._event_handlers.get(type(event), []))
            if not handlers:
                logger.debug(f"No handlers registered for event {event.name}")
                continue

            logger.info(f"Publishing event: {event.name} (ID: {event.event_id})")
            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {getattr(handler, '__name__', handler)} "
                        f"for event {event.name}: {e}",
                        exc_info=True,
                    )


message_bus = MessageBus()
