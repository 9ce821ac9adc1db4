"""
KeyValue Facade Module

This module implements the thin layer that callers use instead of talking
to an adapter directly.

Responsibilities:
- Validate keys, values, TTLs and batch arguments before any storage call
- Prefix every key with the namespace ("{namespace}:{key}")
- Apply the facade's default TTL when the caller gives none
- Wrap adapter failures in KeyValueError with a uniform message
- Emit KVEvents for observability, if enabled

The facade owns no storage state. Any object satisfying KeyValueAdapter
can sit behind it.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..adapters.base import KeyValueAdapter
from ..errors import ConfigurationError, KeyValueError, ValidationError
from .events import EventEmitter, EventType, Handler, KVEvent

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
UNIT_ID = "kv"


class _Unset:
    """Marker for "no value at all"; distinct from None, which is storable."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


class KeyValue:
    """
    Namespacing and validation facade over a KeyValueAdapter.

    Usage:
        kv = KeyValue.create(MemoryAdapter(), namespace="app")
        await kv.set("user:1", {"name": "Alice"})   # stored as "app:user:1"
        user = await kv.get("user:1")

    Attributes:
        adapter: The backend doing the actual storage
        namespace: Key prefix ("" = none)
        default_ttl: TTL in ms used when a set omits one (None = adapter decides)
        throw_on_errors: Raise KeyValueError (True) or only emit an error event
        emit_events: Emit set/get/delete/clear/expired events
        events: The EventEmitter events are delivered to
    """

    def __init__(
            self,
            adapter: KeyValueAdapter,
            namespace: str = "",
            default_ttl: Optional[int] = None,
            description: Optional[str] = None,
            throw_on_errors: bool = True,
            emit_events: bool = False,
            event_emitter: Optional[EventEmitter] = None,
    ):
        if adapter is None:
            raise ConfigurationError(
                f"[{UNIT_ID}] Adapter is required - provide a key-value adapter instance"
            )
        if not isinstance(namespace, str):
            raise ConfigurationError(f"[{UNIT_ID}] Namespace must be a string")
        self._validate_ttl(default_ttl)

        self.adapter = adapter
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.description = description or f"KeyValue with {adapter.name} adapter"
        self.throw_on_errors = throw_on_errors
        self.emit_events = emit_events
        self.events = event_emitter if event_emitter is not None else EventEmitter()

        self._unsubscribe_expired: Optional[Callable[[], None]] = None
        add_listener = getattr(adapter, "add_expiry_listener", None)
        if emit_events and callable(add_listener):
            self._unsubscribe_expired = add_listener(self._on_adapter_expired)

    @classmethod
    def create(cls, adapter: KeyValueAdapter, **options: Any) -> "KeyValue":
        """Build a facade; options are the constructor keywords."""
        return cls(adapter, **options)

    # ------------------------------------------------------------------
    # Storage operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """Get a value, or None if the key is absent or expired."""
        full_key = self._build_key(key)
        try:
            value = await self.adapter.get(full_key)
            hit = value is not None
            # A stored None is still a hit
            if not hit and self.emit_events:
                hit = await self.adapter.exists(full_key)
        except Exception as exc:
            return self._handle_error("get", full_key, exc, None)

        self._emit(EventType.GET, key=full_key, value=value, hit=hit)
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value.

        Args:
            key: Non-empty key (namespaced before storage)
            value: Any value the adapter's codec accepts, including None
            ttl: TTL in ms; None falls back to the facade's default_ttl

        Raises:
            ValidationError: On an empty key, UNSET value or negative TTL
            KeyValueError: If the adapter fails and throw_on_errors is set
        """
        full_key = self._build_key(key)
        if value is UNSET:
            raise ValidationError(f"[{UNIT_ID}] Value cannot be undefined", operation="set", key=full_key)
        self._validate_ttl(ttl)
        effective_ttl = ttl if ttl is not None else self.default_ttl

        try:
            await self.adapter.set(full_key, value, effective_ttl)
        except Exception as exc:
            return self._handle_error("set", full_key, exc, None)

        self._emit(EventType.SET, key=full_key, value=value, ttl=effective_ttl)

    async def delete(self, key: str) -> bool:
        full_key = self._build_key(key)
        try:
            deleted = await self.adapter.delete(full_key)
        except Exception as exc:
            return self._handle_error("delete", full_key, exc, False)

        self._emit(EventType.DELETE, key=full_key, existed=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        full_key = self._build_key(key)
        try:
            return await self.adapter.exists(full_key)
        except Exception as exc:
            return self._handle_error("exists", full_key, exc, False)

    async def clear(self) -> None:
        """Clear the adapter. Note: this is not limited to the namespace."""
        try:
            await self.adapter.clear()
        except Exception as exc:
            return self._handle_error("clear", None, exc, None)

        self._emit(EventType.CLEAR)

    async def mget(self, keys: Sequence[str]) -> List[Any]:
        """Get several values, one result per key in input order."""
        self._require_sequence(keys, "Keys")
        full_keys = [self._build_key(key) for key in keys]
        try:
            return await self.adapter.mget(full_keys)
        except Exception as exc:
            return self._handle_error("mget", None, exc, [None] * len(full_keys))

    async def mset(self, entries: Sequence[Tuple[str, Any]], ttl: Optional[int] = None) -> None:
        """
        Store several key-value pairs.

        Every pair is validated before the adapter sees any of them. The
        adapter applies them in order and stops at the first failure.
        """
        self._require_sequence(entries, "Entries")
        full_entries = []
        for entry in entries:
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise ValidationError(
                    f"[{UNIT_ID}] Each entry must be a (key, value) pair", operation="mset"
                )
            key, value = entry
            full_key = self._build_key(key)
            if value is UNSET:
                raise ValidationError(
                    f"[{UNIT_ID}] Values cannot be undefined", operation="mset", key=full_key
                )
            full_entries.append((full_key, value))

        self._validate_ttl(ttl)
        effective_ttl = ttl if ttl is not None else self.default_ttl

        try:
            await self.adapter.mset(full_entries, effective_ttl)
        except Exception as exc:
            return self._handle_error("mset", None, exc, None)

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Delete several keys. True if at least one was deleted."""
        self._require_sequence(keys, "Keys")
        full_keys = [self._build_key(key) for key in keys]
        try:
            return await self.adapter.delete_many(full_keys)
        except Exception as exc:
            return self._handle_error("delete_many", None, exc, False)

    async def is_healthy(self) -> bool:
        """Never raises: a failing health probe counts as unhealthy."""
        try:
            return bool(await self.adapter.is_healthy())
        except Exception as exc:
            logger.warning(f"[{UNIT_ID}] Health check failed: {exc}")
            return False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def on(self, event_type, handler: Handler) -> Callable[[], None]:
        """Subscribe to an event type. Returns an unsubscribe function."""
        return self.events.on(event_type, handler)

    def get_adapter(self) -> Dict[str, Any]:
        return {"name": self.adapter.name, "config": self.adapter.config}

    def get_stats(self) -> Optional[Dict[str, int]]:
        """Adapter statistics, or None if the adapter keeps none."""
        get_stats = getattr(self.adapter, "get_stats", None)
        return get_stats() if callable(get_stats) else None

    def cleanup(self) -> int:
        """Run the adapter's expiry sweep if it has one."""
        cleanup = getattr(self.adapter, "cleanup", None)
        return cleanup() if callable(cleanup) else 0

    def close(self) -> None:
        """Detach from the adapter's expiry notifications and drop all listeners."""
        if self._unsubscribe_expired is not None:
            self._unsubscribe_expired()
            self._unsubscribe_expired = None
        self.events.remove_all_listeners()

    def whoami(self) -> str:
        return f"KeyValue ({self.adapter.name} adapter) - namespaced key-value storage"

    def help(self) -> str:
        config = json.dumps(self.adapter.config, indent=2, default=repr)
        return f"""
KeyValue v{VERSION} - {self.description}

OPERATIONS:
  get(key)                   Get value by key
  set(key, value, ttl=None)  Store a value, ttl in milliseconds
  delete(key)                Delete a key
  exists(key)                Check if a key exists
  clear()                    Remove all keys
  mget(keys)                 Get several values
  mset(entries, ttl=None)    Store several (key, value) pairs
  delete_many(keys)          Delete several keys
  is_healthy()               Probe the adapter

ADAPTER: {self.adapter.name}
CONFIG: {config}
NAMESPACE: {self.namespace or "none"}
DEFAULT TTL: {self.default_ttl or "none"}
"""

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_key(self, key: str) -> str:
        if not isinstance(key, str) or not key:
            raise ValidationError(f"[{UNIT_ID}] Key must be a non-empty string", key=key)
        return f"{self.namespace}:{key}" if self.namespace else key

    @staticmethod
    def _require_sequence(items: Any, label: str) -> None:
        if not isinstance(items, (list, tuple)):
            raise ValidationError(f"[{UNIT_ID}] {label} must be a list or tuple")

    @staticmethod
    def _validate_ttl(ttl: Any) -> None:
        if ttl is None:
            return
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl < 0:
            raise ValidationError(f"[{UNIT_ID}] TTL must be a non-negative number of milliseconds")

    def _handle_error(self, operation: str, key: Optional[str], error: Exception, fallback: Any) -> Any:
        """
        Report an adapter failure.

        An error event is always emitted. Then either a KeyValueError is
        raised (chained to the original), or the failure is logged and
        fallback is returned.
        """
        target = f" for key '{key}'" if key else ""
        message = f"[{UNIT_ID}] {operation} failed{target}: {error}"

        self.events.emit(KVEvent(
            type=EventType.ERROR.value,
            key=key or "",
            operation=operation,
            error=error,
        ))

        if self.throw_on_errors:
            raise KeyValueError(message, operation=operation, key=key) from error

        logger.warning(message)
        return fallback

    def _emit(self, event_type: EventType, **fields: Any) -> None:
        if self.emit_events:
            self.events.emit(KVEvent(type=event_type.value, **fields))

    def _on_adapter_expired(self, full_key: str) -> None:
        if self.namespace and not full_key.startswith(f"{self.namespace}:"):
            return
        self._emit(EventType.EXPIRED, key=full_key)
