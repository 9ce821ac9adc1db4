"""
Expiring Key-Value Store Module

This module implements the in-memory storage engine behind the adapter
contract.

Features:
- TTL (Time-To-Live) per key, in milliseconds, with a configurable default
- Lazy expiration on access plus an optional periodic sweep task
- Hard capacity bound: new keys beyond max_keys are rejected, never evicted
- Pluggable codec: values are kept as encoded strings
- Hit/miss/set/delete/expired statistics with a memory usage estimate

All storage operations are coroutines so that the engine can stand in for
I/O-backed adapters, but none of them awaits while touching the map. Under
asyncio that makes every operation atomic with respect to the others and to
the sweep.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config.settings import settings
from ..errors import CapacityError, ConfigurationError
from .serialization import DEFAULT_CODEC, SerializationCodec

logger = logging.getLogger(__name__)

# key -> (serialized value, absolute expiry timestamp or None)
Entry = Tuple[str, Optional[float]]

COUNTERS = ("hits", "misses", "sets", "deletes", "expired")


class MemoryAdapter:
    """
    In-memory key-value store with TTL expiration and a capacity bound.

    Internal Storage:
        Uses a dict for O(1) operations.
        Format: key -> (serialized_value, expires_at)
        expires_at = None means no expiration

    Usage:
        async with MemoryAdapter(max_keys=1000, cleanup_interval=0) as store:
            await store.set("user:1", {"name": "Alice"}, ttl=60000)
            user = await store.get("user:1")

    Attributes:
        default_ttl: TTL in ms applied when set() gets no ttl (0 = none)
        max_keys: Maximum number of distinct keys
        cleanup_interval: Milliseconds between sweeps (0 = lazy expiry only)
        codec: The SerializationCodec used for values
    """

    name = "memory"

    def __init__(
            self,
            default_ttl: int = None,
            max_keys: int = None,
            cleanup_interval: int = None,
            codec: SerializationCodec = None,
    ):
        """
        Initialize the store.

        Args:
            default_ttl: Default TTL in ms (default from settings.DEFAULT_TTL)
            max_keys: Key capacity (default from settings.MAX_KEYS)
            cleanup_interval: Sweep period in ms (default from settings.CLEANUP_INTERVAL)
            codec: Serialization codec (default: type-preserving JSON codec)

        Raises:
            ConfigurationError: If any option is out of range
        """
        self.default_ttl = default_ttl if default_ttl is not None else settings.DEFAULT_TTL
        self.max_keys = max_keys if max_keys is not None else settings.MAX_KEYS
        self.cleanup_interval = (
            cleanup_interval if cleanup_interval is not None else settings.CLEANUP_INTERVAL
        )
        self.codec = codec if codec is not None else DEFAULT_CODEC
        self._validate_options()

        self._store: Dict[str, Entry] = {}
        self._stats: Dict[str, int] = dict.fromkeys(COUNTERS, 0)
        self._expiry_listeners: List[Callable[[str], None]] = []
        self._cleanup_task: Optional[asyncio.Task] = None
        self._destroyed = False

        # Without a running loop the sweep starts on the first awaited call
        self._ensure_cleanup_task()

    def _validate_options(self) -> None:
        if isinstance(self.max_keys, bool) or not isinstance(self.max_keys, int) or self.max_keys <= 0:
            raise ConfigurationError(f"max_keys must be a positive integer, got {self.max_keys!r}")
        if self.default_ttl < 0:
            raise ConfigurationError(f"default_ttl must not be negative, got {self.default_ttl!r}")
        if self.cleanup_interval < 0:
            raise ConfigurationError(
                f"cleanup_interval must not be negative, got {self.cleanup_interval!r}"
            )
        if not (callable(getattr(self.codec, "serialize", None))
                and callable(getattr(self.codec, "deserialize", None))):
            raise ConfigurationError("codec must provide serialize() and deserialize()")

    @property
    def config(self) -> Dict[str, Any]:
        """Effective configuration (a copy; changing it has no effect)."""
        return {
            "default_ttl": self.default_ttl,
            "max_keys": self.max_keys,
            "cleanup_interval": self.cleanup_interval,
            "codec": self.codec,
        }

    # ------------------------------------------------------------------
    # Adapter contract
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up

        Returns:
            The decoded value if found and not expired, None otherwise

        An expired entry is removed on the spot and counted both as
        expired and as a miss. If the codec fails to decode, the error
        propagates and the stored entry is left as it was.
        """
        self._ensure_cleanup_task()

        entry = self._store.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        value, expires_at = entry
        if self._is_expired(expires_at, time.time()):
            # Lazy expiration
            self._expire(key)
            self._stats["misses"] += 1
            return None

        decoded = self.codec.deserialize(value)
        self._stats["hits"] += 1
        return decoded

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to store
            value: The value to store (anything the codec accepts)
            ttl: Time-to-live in ms. None uses default_ttl, 0 disables
                 expiration even when a default is configured.

        Raises:
            CapacityError: If key is new and the store already holds max_keys
            SerializationError: If the codec rejects the value

        Updating an existing key never hits the capacity limit.
        """
        self._ensure_cleanup_task()

        if key not in self._store and len(self._store) >= self.max_keys:
            logger.debug(f"Rejected new key {key!r}: store is full ({self.max_keys} keys)")
            raise CapacityError(key, self.max_keys)

        # Serialize before touching the map so a codec failure writes nothing
        serialized = self.codec.serialize(value)
        self._store[key] = (serialized, self._expires_at(ttl))
        self._stats["sets"] += 1

    async def delete(self, key: str) -> bool:
        """
        Delete a key-value pair.

        Returns:
            True if a live entry was deleted, False otherwise. An expired
            entry is evicted (and counted as expired) but reported as False.
        """
        self._ensure_cleanup_task()

        entry = self._store.get(key)
        if entry is None:
            return False

        if self._is_expired(entry[1], time.time()):
            self._expire(key)
            return False

        del self._store[key]
        self._stats["deletes"] += 1
        return True

    async def exists(self, key: str) -> bool:
        """
        Check if a key exists and is not expired.

        Expired entries are evicted exactly like in get(), but exists()
        never decodes the value and never changes the hit/miss counters.
        """
        self._ensure_cleanup_task()

        entry = self._store.get(key)
        if entry is None:
            return False

        if self._is_expired(entry[1], time.time()):
            self._expire(key)
            return False

        return True

    async def clear(self) -> None:
        """Remove all keys and reset every counter."""
        self._ensure_cleanup_task()
        self._store.clear()
        self._reset_stats()

    async def mget(self, keys: Sequence[str]) -> List[Any]:
        """Get several keys; one result per key, in input order."""
        return [await self.get(key) for key in keys]

    async def mset(self, entries: Sequence[Tuple[str, Any]], ttl: Optional[int] = None) -> None:
        """
        Set several key-value pairs in order.

        The first failing set() propagates and stops the batch. Entries
        stored before the failure stay committed.
        """
        for key, value in entries:
            await self.set(key, value, ttl)

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Delete several keys. Returns True if at least one was deleted."""
        deleted_any = False
        for key in keys:
            if await self.delete(key):
                deleted_any = True
        return deleted_any

    async def is_healthy(self) -> bool:
        """The in-memory engine has no dependency that can fail."""
        return True

    # ------------------------------------------------------------------
    # Engine-specific helpers
    # ------------------------------------------------------------------

    def cleanup(self) -> int:
        """
        Remove all expired keys from the store (active expiration).

        Returns:
            Number of keys removed
        """
        now = time.time()
        to_delete = [k for k, (_, exp) in self._store.items() if self._is_expired(exp, now)]
        for key in to_delete:
            self._expire(key)
        return len(to_delete)

    def keys(self) -> List[str]:
        """Live keys. Runs a sweep first, so no expired key is ever listed."""
        self.cleanup()
        return list(self._store)

    def size(self) -> int:
        """
        Get the current number of entries in the store.

        Note: This may include expired keys that haven't been cleaned up yet.
        """
        return len(self._store)

    def get_memory_usage(self) -> int:
        """
        Estimate memory used by the entries, in bytes.

        Counts keys and encoded values at two bytes per UTF-16 code unit
        plus a fixed overhead per entry.
        """
        total = 0
        for key, (value, _) in self._store.items():
            total += _utf16_size(key) + _utf16_size(value) + settings.ENTRY_OVERHEAD_BYTES
        return total

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - hits, misses, sets, deletes, expired: cumulative counters
              since creation or the last clear()
            - keys: Current number of entries
            - memory_bytes: Estimate from get_memory_usage()
        """
        stats = dict(self._stats)
        stats["keys"] = len(self._store)
        stats["memory_bytes"] = self.get_memory_usage()
        return stats

    def add_expiry_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """
        Register a callback invoked with the key of every expired entry.

        Returns:
            A function that removes the listener again
        """
        self._expiry_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._expiry_listeners:
                self._expiry_listeners.remove(listener)

        return unsubscribe

    def destroy(self) -> None:
        """
        Stop the sweep task and drop all entries and counters.

        Safe to call any number of times.
        """
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None and not task.done() and not task.get_loop().is_closed():
            task.cancel()
            logger.info("Stopped cleanup sweep")

        self._destroyed = True
        self._store.clear()
        self._expiry_listeners.clear()
        self._reset_stats()

    async def __aenter__(self) -> "MemoryAdapter":
        self._ensure_cleanup_task()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _is_expired(expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and expires_at <= now

    def _expires_at(self, ttl: Optional[int]) -> Optional[float]:
        effective = self.default_ttl if ttl is None else ttl
        if effective and effective > 0:
            return time.time() + effective / 1000
        return None

    def _expire(self, key: str) -> None:
        self._store.pop(key, None)
        self._stats["expired"] += 1
        logger.debug(f"Key expired: {key!r}")

        for listener in list(self._expiry_listeners):
            try:
                listener(key)
            except Exception:
                logger.exception(f"Expiry listener failed for key {key!r}")

    def _reset_stats(self) -> None:
        self._stats = dict.fromkeys(COUNTERS, 0)

    def _ensure_cleanup_task(self) -> None:
        if self.cleanup_interval <= 0 or self._destroyed:
            return
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        self._cleanup_task = loop.create_task(self._cleanup_loop())

    async def _cleanup_loop(self) -> None:
        """Run cleanup() every cleanup_interval ms until cancelled."""
        interval = self.cleanup_interval / 1000
        logger.info(f"Started cleanup sweep every {self.cleanup_interval} ms")

        try:
            while True:
                await asyncio.sleep(interval)
                removed = self.cleanup()
                if removed:
                    logger.debug(f"Cleanup sweep removed {removed} expired keys")
        except asyncio.CancelledError:
            logger.debug("Cleanup sweep cancelled")
            raise


def _utf16_size(text: str) -> int:
    return len(text.encode("utf-16-le", errors="surrogatepass"))
