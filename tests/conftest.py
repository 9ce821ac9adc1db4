"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

from typing import Any, AsyncGenerator, Dict, Generator, List, Optional

import pytest
import pytest_asyncio

from kvstore.cache.store import MemoryAdapter
from kvstore.facade.events import KVEvent
from kvstore.facade.keyvalue import KeyValue


# ============================================================================
# MemoryAdapter Fixtures
# ============================================================================

@pytest.fixture
def store() -> Generator[MemoryAdapter, None, None]:
    """Create a fresh store (100 keys, no default TTL, no sweep task)."""
    adapter = MemoryAdapter(max_keys=100, default_ttl=0, cleanup_interval=0)
    yield adapter
    adapter.destroy()


@pytest.fixture
def small_store() -> Generator[MemoryAdapter, None, None]:
    """Create a store with small capacity for overflow testing (5 keys)."""
    adapter = MemoryAdapter(max_keys=5, default_ttl=0, cleanup_interval=0)
    yield adapter
    adapter.destroy()


@pytest.fixture
def ttl_store() -> Generator[MemoryAdapter, None, None]:
    """Create a store with a 100 ms default TTL."""
    adapter = MemoryAdapter(max_keys=100, default_ttl=100, cleanup_interval=0)
    yield adapter
    adapter.destroy()


@pytest_asyncio.fixture
async def sweeping_store() -> AsyncGenerator[MemoryAdapter, None]:
    """
    Create a store whose sweep task runs every 50 ms.

    Built inside the running loop so the task starts immediately, and
    destroyed in the same loop.
    """
    adapter = MemoryAdapter(max_keys=100, default_ttl=0, cleanup_interval=50)
    yield adapter
    adapter.destroy()


# ============================================================================
# Stand-in Adapters
# ============================================================================

class RecordingAdapter:
    """
    A dict-backed adapter that records every call it receives.

    It does not inherit from anything: it satisfies the adapter contract
    structurally, like any third-party backend would.
    """

    name = "recording"

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.calls: List[tuple] = []

    @property
    def config(self) -> Dict[str, Any]:
        return {"kind": "dict"}

    async def get(self, key: str) -> Any:
        self.calls.append(("get", key))
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self.calls.append(("set", key, value, ttl))
        self.data[key] = value

    async def delete(self, key: str) -> bool:
        self.calls.append(("delete", key))
        return self.data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        self.calls.append(("exists", key))
        return key in self.data

    async def clear(self) -> None:
        self.calls.append(("clear",))
        self.data.clear()

    async def mget(self, keys: List[str]) -> List[Any]:
        self.calls.append(("mget", list(keys)))
        return [self.data.get(key) for key in keys]

    async def mset(self, entries: List[tuple], ttl: Optional[int] = None) -> None:
        self.calls.append(("mset", list(entries), ttl))
        for key, value in entries:
            self.data[key] = value

    async def delete_many(self, keys: List[str]) -> bool:
        self.calls.append(("delete_many", list(keys)))
        return any([self.data.pop(key, None) is not None for key in keys])

    async def is_healthy(self) -> bool:
        return True


class FailingAdapter(RecordingAdapter):
    """An adapter whose every operation fails like a lost connection."""

    name = "failing"

    def _fail(self):
        raise ConnectionError("backend unreachable")

    async def get(self, key):
        self._fail()

    async def set(self, key, value, ttl=None):
        self._fail()

    async def delete(self, key):
        self._fail()

    async def exists(self, key):
        self._fail()

    async def clear(self):
        self._fail()

    async def mget(self, keys):
        self._fail()

    async def mset(self, entries, ttl=None):
        self._fail()

    async def delete_many(self, keys):
        self._fail()

    async def is_healthy(self):
        self._fail()


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def failing_adapter() -> FailingAdapter:
    return FailingAdapter()


# ============================================================================
# Facade Fixtures
# ============================================================================

@pytest.fixture
def kv(store: MemoryAdapter) -> Generator[KeyValue, None, None]:
    """A facade with namespace "test" and events enabled over the store."""
    facade = KeyValue.create(store, namespace="test", emit_events=True)
    yield facade
    facade.close()


@pytest.fixture
def recorded_events(kv: KeyValue) -> List[KVEvent]:
    """Every event emitted by the kv fixture, in order."""
    events: List[KVEvent] = []
    for event_type in ("set", "get", "delete", "clear", "expired", "error"):
        kv.on(event_type, events.append)
    return events


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
