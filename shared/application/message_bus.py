"""
Message Bus

Routes commands to their single handler and domain events to every
subscriber. Views and Celery tasks only know commands; the booking
handlers are wired in apps.bookings.bootstrap and subscribers (such as
the confirmation email) register from their own app.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Any], Any]
EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Commands: exactly one handler, whose result goes back to the caller
    Events: any number of subscribers, each failing on its own
    """

    def __init__(self):
        self._command_handlers: Dict[Type, CommandHandler] = {}
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    # --- commands -----------------------------------------------------------
    def register_command_handler(self, command_type: Type, handler: CommandHandler):
        """
        Raises:
            ValueError: if another handler already owns the command type
        """
        current = self._command_handlers.get(command_type)
        if current is not None and current is not handler:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler
        logger.debug(f"Registered command handler for {command_type.__name__}")

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        """
        Run the command's handler and return its result

        Domain errors propagate unchanged so the API layer can map them.

        Raises:
            LookupError: if nothing handles the command type
        """
        name = type(command).__name__
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise LookupError(f"No handler registered for command {name}")

        logger.info(f"Handling command: {name}")
        try:
            return handler(command)
        except Exception as e:
            logger.warning(f"Command {name} failed: {e}")
            raise

    # --- events -------------------------------------------------------------
    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """Subscribe ``handler`` to ``event_type``; subscribing twice is a no-op"""
        subscribers = self._subscribers.setdefault(event_type, [])
        if handler not in subscribers:
            subscribers.append(handler)
            logger.debug(f"Registered event handler for {event_type.__name__}")

    def publish_events(self, events: List[DomainEvent]):
        """Deliver each event to its subscribers in registration order"""
        for event in events:
            subscribers = self._subscribers.get(type(event), [])
            if not subscribers:
                logger.debug(f"No handlers registered for event {type(event).__name__}")
                continue
            logger.info(f"Publishing event: {type(event).__name__} (ID: {event.event_id})")
            for handler in subscribers:
                self._deliver(handler, event)

    def _deliver(self, handler: EventHandler, event: DomainEvent):
        handler_name = getattr(handler, '__name__', repr(handler))
        try:
            handler(event)
        except Exception as e:
            # One failing subscriber must not starve the others
            logger.error(
                f"Error in event handler {handler_name} for event {type(event).__name__}: {e}",
                exc_info=True,
            )


# Global message bus instance
message_bus = MessageBus()
