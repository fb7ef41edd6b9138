"""Binary encoding of cache items.

Each cache file holds exactly one item in a self-describing,
length-prefixed layout::

    magic   4 bytes   b"SHC\\x01"
    hlen    4 bytes   big-endian unsigned length of the header
    header  hlen      orjson document {"key": str, "expiry": RFC 3339 | null}
    payload rest      pickle of the value

The header is small and always JSON, so tooling can inspect keys and
expiry without unpickling anything. The payload may hold any picklable
object.
"""

from __future__ import annotations

import pickle
import struct
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shardcache.shared.constants import CacheFormat
from shardcache.shared.errors import (
    CacheSerializationError,
    ErrorCode,
    ErrorContext,
    create_decode_error,
)

_PREFIX = struct.Struct(CacheFormat.HEADER_FORMAT)


class ItemHeader(BaseModel):
    """JSON header stored in front of every pickled value."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., description="Original cache key, checked on read")
    expiry: datetime | None = Field(None, description="Absolute expiry (None for no TTL)")


@dataclass(frozen=True)
class CacheItem:
    """A decoded cache item."""

    key: str
    value: Any
    expiry: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Expiry is inclusive: an item is dead at its expiry instant."""
        return self.expiry is not None and self.expiry <= now


def encode(key: str, value: Any, expiry: datetime | None) -> bytes:
    """Encode an item into its on-disk representation.

    Raises:
        CacheSerializationError: If the value cannot be pickled
    """
    try:
        payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise CacheSerializationError(
            ErrorCode.CACHE_SERIALIZATION_ERROR,
            f"Failed to serialize value for key '{key}': {e!s}",
            ErrorContext(
                operation="encode_item",
                additional_data={"key": key, "value_type": type(value).__name__},
            ),
            e,
        ) from e

    header = orjson.dumps(ItemHeader(key=key, expiry=expiry).model_dump())
    return _PREFIX.pack(CacheFormat.MAGIC, len(header)) + header + payload


def decode(data: bytes, file_path: Path | str | None = None) -> CacheItem | None:
    """Decode an item from its on-disk representation.

    Args:
        data: Raw file content
        file_path: File the content was read from, for error context only

    Returns:
        The decoded item, or None if ``data`` is empty

    Raises:
        CacheDecodeError: If the content is malformed or the value fails to
            reconstruct
    """
    if not data:
        return None

    if len(data) < _PREFIX.size:
        raise create_decode_error("Cache file is truncated", file_path)

    magic, header_length = _PREFIX.unpack_from(data)
    if magic != CacheFormat.MAGIC:
        raise create_decode_error("Cache file has an unknown format", file_path)

    header_end = _PREFIX.size + header_length
    if len(data) < header_end:
        raise create_decode_error("Cache file header is truncated", file_path)

    try:
        header = ItemHeader.model_validate(orjson.loads(data[_PREFIX.size : header_end]))
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise create_decode_error(f"Invalid cache file header: {e!s}", file_path, e) from e

    try:
        value = pickle.loads(data[header_end:])  # noqa: S301
    except Exception as e:  # pylint: disable=broad-exception-caught
        # Boundary: unpickling runs arbitrary __setstate__/__reduce__ code
        raise create_decode_error(str(e), file_path, e) from e

    return CacheItem(key=header.key, value=value, expiry=header.expiry)
