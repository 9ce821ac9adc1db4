"""
KV Event Definitions

This module defines the events emitted by the KeyValue facade and a small
emitter to subscribe to them. Emission is a side channel: a handler that
raises is logged and skipped, and never affects the storage operation.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Enumeration of emitted event types."""
    SET = "set"
    GET = "get"
    DELETE = "delete"
    CLEAR = "clear"
    EXPIRED = "expired"
    ERROR = "error"


@dataclass
class KVEvent:
    """
    Represents a storage event.

    Attributes:
        type: Event name (one of the EventType values)
        key: Full (namespaced) key, empty for clear and batch errors
        value: Value stored or returned (set/get)
        ttl: TTL in ms used by a set
        hit: Whether a get found the key (a stored None counts as found)
        existed: Whether a delete removed something
        operation: Failed operation name (error events)
        error: The exception that was raised (error events)
        timestamp: Event creation time (time.time())
    """
    type: str
    key: str = ""
    value: Any = None
    ttl: Optional[int] = None
    hit: Optional[bool] = None
    existed: Optional[bool] = None
    operation: str = ""
    error: Optional[BaseException] = None
    timestamp: float = field(default_factory=time.time)


Handler = Callable[[KVEvent], None]


def _event_name(event_type: Union[str, EventType]) -> str:
    return event_type.value if isinstance(event_type, EventType) else event_type


class EventEmitter:
    """
    Minimal publish/subscribe hub keyed by event name.

    Usage:
        emitter = EventEmitter()
        unsubscribe = emitter.on("set", lambda event: print(event.key))
        emitter.emit(KVEvent(type="set", key="user:1"))
        unsubscribe()
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def on(self, event_type: Union[str, EventType], handler: Handler) -> Callable[[], None]:
        """
        Subscribe to events of one type.

        Returns:
            A function that removes this subscription
        """
        name = _event_name(event_type)
        self._handlers.setdefault(name, []).append(handler)
        return lambda: self.off(name, handler)

    def off(self, event_type: Union[str, EventType], handler: Optional[Handler] = None) -> None:
        """Remove one handler, or every handler of the type if none is given."""
        name = _event_name(event_type)
        if handler is None:
            self._handlers.pop(name, None)
            return

        handlers = self._handlers.get(name)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[name]

    def emit(self, event: KVEvent) -> None:
        """Deliver an event to every handler subscribed to its type."""
        for handler in list(self._handlers.get(event.type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler for {event.type!r} event failed")

    def remove_all_listeners(self, event_type: Union[str, EventType, None] = None) -> None:
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(_event_name(event_type), None)

    def listener_count(self, event_type: Union[str, EventType]) -> int:
        return len(self._handlers.get(_event_name(event_type), []))

    def has_listeners(self, event_type: Union[str, EventType]) -> bool:
        return self.listener_count(event_type) > 0

    def event_types(self) -> List[str]:
        """Names of all event types that currently have subscribers."""
        return list(self._handlers)
