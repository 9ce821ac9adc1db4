"""
Serialization Codec Module

This module converts arbitrary values to and from the string payload kept
by the store.

Encoding rules (on top of plain JSON):
- Binary blobs (bytes, bytearray, memoryview) become ":base64:<data>"
- Strings starting with ":" get one extra ":" in front, so they can never
  be mistaken for a marker; the extra ":" is removed on read
- Date-like values (anything with an isoformat() method) are stored as
  their ISO string
- Tuples are stored as arrays and come back as lists

The store only ever calls codec.serialize / codec.deserialize, so any pair
of functions can be plugged in through create_codec().
"""

import base64
import json
from dataclasses import dataclass
from typing import Any, Callable

from ..errors import SerializationError

MARKER = ":"
BASE64_PREFIX = ":base64:"


def _encode(value: Any) -> Any:
    """Convert a value into a JSON-ready structure with markers applied."""
    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return MARKER + value if value.startswith(MARKER) else value

    if isinstance(value, (bytes, bytearray, memoryview)):
        return BASE64_PREFIX + base64.b64encode(bytes(value)).decode("ascii")

    if isinstance(value, dict):
        encoded = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(
                    f"Object keys must be strings, got {type(key).__name__}",
                    operation="serialize",
                )
            encoded[key] = _encode(item)
        return encoded

    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]

    isoformat = getattr(value, "isoformat", None)
    if callable(isoformat):
        return _encode(isoformat())

    raise SerializationError(
        f"Cannot serialize value of type {type(value).__name__}",
        operation="serialize",
    )


def _decode(value: Any) -> Any:
    """Reverse _encode on a structure produced by json.loads."""
    if isinstance(value, str):
        if value.startswith(BASE64_PREFIX):
            return base64.b64decode(value[len(BASE64_PREFIX):])
        return value[1:] if value.startswith(MARKER) else value

    if isinstance(value, dict):
        return {key: _decode(item) for key, item in value.items()}

    if isinstance(value, list):
        return [_decode(item) for item in value]

    return value


def default_serialize(value: Any) -> str:
    """
    Serialize a value, preserving binary blobs and marker-prefixed strings.

    Args:
        value: Any supported value (None, bool, int, float, str, bytes,
               dict with string keys, list/tuple, date-like objects)

    Returns:
        Compact JSON string

    Raises:
        SerializationError: If the value (or a nested value) is unsupported
    """
    return json.dumps(_encode(value), separators=(",", ":"))


def default_deserialize(data: str) -> Any:
    """
    Restore a value produced by default_serialize().

    Raises:
        ValueError: If data is not valid JSON
    """
    return _decode(json.loads(data))


@dataclass(frozen=True)
class SerializationCodec:
    """
    A serialize/deserialize pair used by the store.

    Attributes:
        serialize: Callable turning a value into a string
        deserialize: Callable turning that string back into a value
    """
    serialize: Callable[[Any], str]
    deserialize: Callable[[str], Any]


def create_codec(
        serialize: Callable[[Any], str] = default_serialize,
        deserialize: Callable[[str], Any] = default_deserialize,
) -> SerializationCodec:
    """Build a codec, falling back to the type-preserving functions."""
    return SerializationCodec(serialize=serialize, deserialize=deserialize)


def _identity(data: str) -> Any:
    return data


DEFAULT_CODEC = create_codec()

# Plain JSON: faster, but bytes are unsupported and markers are not applied
JSON_CODEC = SerializationCodec(serialize=json.dumps, deserialize=json.loads)

# For callers that already hold serialized strings
IDENTITY_CODEC = SerializationCodec(serialize=str, deserialize=_identity)
