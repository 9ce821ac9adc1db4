"""Cache module for KV-Store."""

from .serialization import (
    DEFAULT_CODEC,
    IDENTITY_CODEC,
    JSON_CODEC,
    SerializationCodec,
    create_codec,
    default_deserialize,
    default_serialize,
)
from .store import MemoryAdapter

__all__ = [
    "MemoryAdapter",
    "SerializationCodec",
    "create_codec",
    "default_serialize",
    "default_deserialize",
    "DEFAULT_CODEC",
    "JSON_CODEC",
    "IDENTITY_CODEC",
]
