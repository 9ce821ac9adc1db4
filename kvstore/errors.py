"""
Error hierarchy for KV-Store.

All errors raised by the store, the codecs and the facade derive from
KVStoreError. Validation and configuration errors are also ValueErrors, and
codec errors are TypeErrors, so callers written against the builtin types
keep working.
"""

from typing import Optional


class KVStoreError(Exception):
    """
    Base error for all KV-Store exceptions.

    Attributes:
        operation: Name of the operation that failed (e.g. "set")
        key: The key involved, if any
    """

    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None):
        self.operation = operation
        self.key = key
        super().__init__(message)


class ValidationError(KVStoreError, ValueError):
    """Caller supplied an invalid key, value, TTL or batch argument."""


class ConfigurationError(KVStoreError, ValueError):
    """Invalid store or facade configuration."""


class CapacityError(KVStoreError):
    """A new key was rejected because the store is full."""

    def __init__(self, key: str, max_keys: int):
        self.max_keys = max_keys
        super().__init__(
            f"Maximum keys limit ({max_keys}) reached, cannot store '{key}'",
            operation="set",
            key=key,
        )


class SerializationError(KVStoreError, TypeError):
    """A value cannot be represented by the codec."""


class KeyValueError(KVStoreError):
    """An adapter failure, wrapped by the KeyValue facade."""
