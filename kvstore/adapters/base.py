"""
Storage Adapter Contract

Any backend (in-memory, networked, file-based) that provides these
attributes and coroutines can be handed to the KeyValue facade. Conformance
is structural: adapters do not need to inherit from KeyValueAdapter.

TTL values are in milliseconds. A missing value is reported as None.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class KeyValueAdapter(Protocol):
    """The nine-operation storage contract plus identity metadata."""

    name: str

    @property
    def config(self) -> Dict[str, Any]:
        """Introspectable configuration of the backend."""
        ...

    async def get(self, key: str) -> Any:
        """Return the stored value, or None if absent or expired."""
        ...

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ...

    async def delete(self, key: str) -> bool:
        """Return True if the key existed and was removed."""
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def clear(self) -> None:
        ...

    async def mget(self, keys: Sequence[str]) -> List[Any]:
        """One result per key, in input order."""
        ...

    async def mset(self, entries: Sequence[Tuple[str, Any]], ttl: Optional[int] = None) -> None:
        ...

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Return True if at least one key was deleted."""
        ...

    async def is_healthy(self) -> bool:
        ...
