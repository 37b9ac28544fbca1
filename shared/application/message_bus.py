"""
Message Bus

In-process fan-out of committed domain events to subscribers such as
notification dispatch or reporting. Subscribers register either for a
DomainEvent class or for a dotted event type ("reservation.confirmed").
"""

from typing import Callable, Dict, List, Type, Union
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]
EventKey = Union[Type[DomainEvent], str]


class MessageBus:
    """
    Message bus for domain events

    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._handlers: Dict[EventKey, List[Handler]] = {}

    def register_event_handler(self, event_key: EventKey, handler: Handler):
        """
        Register an event handler

        Multiple handlers can be registered for the same key.
        """
        self._handlers.setdefault(event_key, []).append(handler)
        logger.debug(f"Registered event handler {handler.__name__} for {_key_name(event_key)}")

    def _handlers_for(self, event: DomainEvent) -> List[Handler]:
        return self._handlers.get(type(event), []) + self._handlers.get(event.event_type, [])

    def publish_events(self, events: List[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event will be called.
        Errors in handlers are logged but don't stop other handlers.
        """
        for event in events:
            handlers = self._handlers_for(event)

            if not handlers:
                logger.debug(f"No handlers registered for event {event.event_type}")
                continue

            logger.info(f"Publishing event: {event.event_type} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                    logger.debug(f"Event {event.event_type} handled by {handler.__name__}")
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} "
                        f"for event {event.event_type}: {e}",
                        exc_info=True
                    )
                    # Don't raise - other handlers should still run


def _key_name(event_key: EventKey) -> str:
    return event_key if isinstance(event_key, str) else event_key.__name__


# Global message bus instance
message_bus = MessageBus()
