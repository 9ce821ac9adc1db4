"""
Tests for the Expiring Store: basic operations

These tests verify the MemoryAdapter operations:
- set(): Insert or update values of any supported type
- get(): Retrieve decoded values
- delete(): Remove entries
- exists(): Check presence without touching hit/miss counters
- clear(), statistics, configuration and codec behaviour

Run with: python -m pytest tests/test_store.py -v
"""

import pytest

from kvstore.adapters.base import KeyValueAdapter
from kvstore.cache.serialization import IDENTITY_CODEC, create_codec
from kvstore.cache.store import MemoryAdapter
from kvstore.errors import ConfigurationError, SerializationError


@pytest.mark.asyncio
class TestMemoryAdapterSet:
    """Test set() method."""

    async def test_set_new_key(self, store: MemoryAdapter):
        """Test inserting a new key-value pair."""
        result = await store.set("key1", "value1")
        assert result is None
        assert store.size() == 1

    async def test_set_update_existing_key(self, store: MemoryAdapter):
        """Overwrite semantics: no duplication, every set counted."""
        await store.set("a", {"x": 1})
        await store.set("a", {"x": 2})

        assert await store.get("a") == {"x": 2}
        stats = store.get_stats()
        assert stats["sets"] == 2
        assert stats["keys"] == 1

    async def test_set_different_types(self, store: MemoryAdapter):
        """Test storing each supported value type."""
        values = {
            "string": "hello",
            "number": 42,
            "float": 1.5,
            "bool": True,
            "array": [1, 2, 3],
            "object": {"name": "Alice", "age": 30},
            "null": None,
        }
        for key, value in values.items():
            await store.set(key, value)

        for key, value in values.items():
            assert await store.get(key) == value

    async def test_set_binary(self, store: MemoryAdapter):
        """Test storing binary data."""
        await store.set("b", bytes([0, 1, 255, 254]))
        result = await store.get("b")
        assert isinstance(result, bytes)
        assert list(result) == [0, 1, 255, 254]

    async def test_set_overwrite_multiple_times(self, store: MemoryAdapter):
        """Test overwriting the same key multiple times."""
        for i in range(10):
            await store.set("key", f"value{i}")

        assert await store.get("key") == "value9"
        assert store.size() == 1

    async def test_values_are_stored_encoded(self, store: MemoryAdapter):
        """The map holds the codec output, never the live object."""
        original = {"items": [1, 2]}
        await store.set("obj", original)
        original["items"].append(3)

        assert await store.get("obj") == {"items": [1, 2]}
        assert isinstance(store._store["obj"][0], str)


@pytest.mark.asyncio
class TestMemoryAdapterGet:
    """Test get() method."""

    async def test_get_nonexistent_key(self, store: MemoryAdapter):
        """Test getting a key that was never set."""
        assert await store.get("nonexistent") is None

    async def test_get_counts_hits_and_misses(self, store: MemoryAdapter):
        """Test hit and miss counters."""
        await store.set("key", "value")
        await store.get("key")
        await store.get("key")
        await store.get("missing")

        stats = store.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1

    async def test_get_stored_none_is_a_hit(self, store: MemoryAdapter):
        """Test that a stored None counts as a hit."""
        await store.set("nothing", None)
        assert await store.get("nothing") is None
        assert store.get_stats()["hits"] == 1

    async def test_case_sensitive_keys(self, store: MemoryAdapter):
        """Test that keys are case-sensitive."""
        await store.set("Key", "value1")
        await store.set("KEY", "value2")
        await store.set("key", "value3")

        assert await store.get("Key") == "value1"
        assert await store.get("KEY") == "value2"
        assert await store.get("key") == "value3"
        assert store.size() == 3


@pytest.mark.asyncio
class TestMemoryAdapterDelete:
    """Test delete() method."""

    async def test_delete_existing_key(self, store: MemoryAdapter):
        """Test deleting an existing key."""
        await store.set("key1", "value1")
        assert await store.delete("key1") is True
        assert await store.get("key1") is None
        assert store.size() == 0

    async def test_delete_nonexistent_key(self, store: MemoryAdapter):
        """Test deleting a key that was never set."""
        assert await store.delete("nonexistent") is False

    async def test_deletes_counted_only_on_success(self, store: MemoryAdapter):
        """Test that only successful deletes are counted."""
        await store.set("key", "value")
        await store.delete("key")
        await store.delete("key")
        await store.delete("never")

        assert store.get_stats()["deletes"] == 1

    async def test_delete_then_reinsert(self, store: MemoryAdapter):
        """Test reinserting a deleted key."""
        await store.set("key", "value1")
        await store.delete("key")
        await store.set("key", "value2")

        assert await store.get("key") == "value2"
        assert store.size() == 1


@pytest.mark.asyncio
class TestMemoryAdapterExists:
    """Test exists() method."""

    async def test_exists_with_existing_key(self, store: MemoryAdapter):
        """Test exists() on an existing key."""
        await store.set("key1", "value1")
        assert await store.exists("key1") is True

    async def test_exists_with_nonexistent_key(self, store: MemoryAdapter):
        """Test exists() on a missing key."""
        assert await store.exists("nonexistent") is False

    async def test_exists_after_delete(self, store: MemoryAdapter):
        """Test exists() after delete()."""
        await store.set("key", "value")
        await store.delete("key")
        assert await store.exists("key") is False

    async def test_exists_does_not_touch_hit_miss_counters(self, store: MemoryAdapter):
        """Test that exists() leaves hits and misses alone."""
        await store.set("key", "value")
        await store.exists("key")
        await store.exists("missing")

        stats = store.get_stats()
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    async def test_exists_does_not_decode(self):
        """Test that exists() never calls the codec."""
        def explode(data):
            raise AssertionError("deserialize must not be called")

        adapter = MemoryAdapter(cleanup_interval=0, codec=create_codec(deserialize=explode))
        await adapter.set("key", {"a": 1})
        assert await adapter.exists("key") is True


@pytest.mark.asyncio
class TestMemoryAdapterClear:
    """Test clear() and counter reset."""

    async def test_clear_removes_everything(self, store: MemoryAdapter):
        """Test that clear() removes all keys and resets stats."""
        for i in range(3):
            await store.set(f"key{i}", i)

        await store.clear()

        assert store.size() == 0
        assert await store.get("key0") is None

    async def test_clear_twice_keeps_counters_at_zero(self, store: MemoryAdapter):
        """Test calling clear() twice."""
        await store.set("key", "value")
        await store.get("key")
        await store.get("missing")
        await store.delete("key")

        await store.clear()
        first = store.get_stats()
        await store.clear()
        second = store.get_stats()

        expected = {
            "hits": 0, "misses": 0, "sets": 0, "deletes": 0,
            "expired": 0, "keys": 0, "memory_bytes": 0,
        }
        assert first == expected
        assert second == expected

    async def test_clear_empty_store(self, store: MemoryAdapter):
        """Test clear() on an empty store."""
        await store.clear()
        assert store.size() == 0


@pytest.mark.asyncio
class TestMemoryAdapterStats:
    """Test statistics snapshot and memory estimate."""

    async def test_initial_stats(self, store: MemoryAdapter):
        """Test the stats of a fresh store."""
        assert store.get_stats() == {
            "hits": 0, "misses": 0, "sets": 0, "deletes": 0,
            "expired": 0, "keys": 0, "memory_bytes": 0,
        }

    async def test_memory_usage_estimate(self, store: MemoryAdapter):
        """Test the memory estimate for one entry."""
        await store.set("ab", "xyz")
        # key 2 chars, value '"xyz"' 5 chars, two bytes each, plus 16 overhead
        assert store.get_memory_usage() == 2 * 2 + 5 * 2 + 16
        assert store.get_stats()["memory_bytes"] == store.get_memory_usage()

    async def test_memory_usage_counts_utf16_units(self, store: MemoryAdapter):
        """Test that the estimate counts UTF-16 code units."""
        await store.set("😀", "")
        # the emoji is a surrogate pair (4 bytes); '""' is 2 chars
        assert store.get_memory_usage() == 4 + 2 * 2 + 16

    async def test_memory_shrinks_after_delete(self, store: MemoryAdapter):
        """Test that the estimate drops after delete()."""
        await store.set("a", "value")
        await store.set("b", "value")
        before = store.get_memory_usage()
        await store.delete("a")
        assert 0 < store.get_memory_usage() < before

    async def test_stats_snapshot_is_a_copy(self, store: MemoryAdapter):
        """Test that get_stats() returns a copy."""
        stats = store.get_stats()
        stats["hits"] = 99
        assert store.get_stats()["hits"] == 0


@pytest.mark.asyncio
class TestMemoryAdapterContract:
    """Identity, configuration and health."""

    async def test_conforms_to_adapter_contract(self, store: MemoryAdapter):
        """Test that MemoryAdapter satisfies the adapter contract."""
        assert isinstance(store, KeyValueAdapter)
        assert store.name == "memory"

    async def test_config_reflects_options(self, store: MemoryAdapter):
        """Test that config reports the constructor options."""
        config = store.config
        assert config["max_keys"] == 100
        assert config["default_ttl"] == 0
        assert config["cleanup_interval"] == 0
        assert "codec" in config

    async def test_config_is_a_copy(self, store: MemoryAdapter):
        """Test that changing config has no effect."""
        store.config["max_keys"] = 1
        assert store.max_keys == 100

    async def test_is_healthy(self, store: MemoryAdapter):
        """Test the health probe."""
        assert await store.is_healthy() is True

    @pytest.mark.parametrize("options", [
        {"max_keys": 0},
        {"max_keys": -1},
        {"max_keys": 1.5},
        {"default_ttl": -1},
        {"cleanup_interval": -10},
        {"codec": object()},
    ])
    async def test_invalid_options_rejected(self, options):
        """Test rejection of out-of-range options."""
        with pytest.raises(ConfigurationError):
            MemoryAdapter(**options)


@pytest.mark.asyncio
class TestMemoryAdapterCodec:
    """Swappable codecs and codec failures."""

    async def test_identity_codec(self):
        """Test a store using IDENTITY_CODEC."""
        adapter = MemoryAdapter(cleanup_interval=0, codec=IDENTITY_CODEC)
        await adapter.set("key", 123)
        assert await adapter.get("key") == "123"

    async def test_serialize_failure_writes_nothing(self, store: MemoryAdapter):
        """Test that a serialize failure leaves the store unchanged."""
        await store.set("key", "original")

        with pytest.raises(SerializationError):
            await store.set("key", {"bad": object()})
        with pytest.raises(SerializationError):
            await store.set("other", {1, 2})

        assert await store.get("key") == "original"
        assert await store.exists("other") is False
        assert store.get_stats()["sets"] == 1

    async def test_deserialize_failure_keeps_entry(self):
        """Test that a deserialize failure keeps the entry."""
        calls = []

        def flaky(data):
            calls.append(data)
            if len(calls) == 1:
                raise ValueError("corrupt")
            return data

        adapter = MemoryAdapter(
            cleanup_interval=0,
            codec=create_codec(serialize=str, deserialize=flaky),
        )
        await adapter.set("key", "payload")

        with pytest.raises(ValueError, match="corrupt"):
            await adapter.get("key")

        assert adapter.size() == 1
        assert adapter.get_stats()["hits"] == 0
        assert await adapter.get("key") == "payload"
