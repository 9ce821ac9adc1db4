"""
KV-Store: Asynchronous Key-Value Storage

A uniform asyncio key-value storage abstraction with pluggable backends.
Ships an in-memory engine with TTL expiration, statistics, a capacity
bound and type-preserving serialization, plus a namespacing facade.
"""

from .adapters.base import KeyValueAdapter
from .cache.serialization import (
    DEFAULT_CODEC,
    IDENTITY_CODEC,
    JSON_CODEC,
    SerializationCodec,
    create_codec,
)
from .cache.store import MemoryAdapter
from .errors import (
    CapacityError,
    ConfigurationError,
    KeyValueError,
    KVStoreError,
    SerializationError,
    ValidationError,
)
from .facade.events import EventEmitter, EventType, KVEvent
from .facade.keyvalue import UNSET, KeyValue

__version__ = "1.0.0"

__all__ = [
    "KeyValue",
    "KeyValueAdapter",
    "MemoryAdapter",
    "SerializationCodec",
    "create_codec",
    "DEFAULT_CODEC",
    "JSON_CODEC",
    "IDENTITY_CODEC",
    "EventEmitter",
    "EventType",
    "KVEvent",
    "UNSET",
    "KVStoreError",
    "ValidationError",
    "ConfigurationError",
    "CapacityError",
    "SerializationError",
    "KeyValueError",
]
