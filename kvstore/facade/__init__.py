"""KeyValue facade and event emission for KV-Store."""

from .events import EventEmitter, EventType, KVEvent
from .keyvalue import UNSET, KeyValue

__all__ = ["KeyValue", "UNSET", "EventEmitter", "EventType", "KVEvent"]
