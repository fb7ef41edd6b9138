"""
shardcache - Sharded file cache with TTL expiry

A filesystem-backed key-value cache that many processes can share,
with atomic writes, TTL expiry and directory-wide maintenance.
"""

__version__ = "0.1.0"

from .services.file_cache import FileCache
from .shared.clock import Clock, FrozenClock, SystemClock
from .shared.errors import (
    CacheStorageError,
    InvalidCacheKeyError,
    InvalidTTLError,
    ShardCacheError,
)

__all__ = [
    "CacheStorageError",
    "Clock",
    "FileCache",
    "FrozenClock",
    "InvalidCacheKeyError",
    "InvalidTTLError",
    "ShardCacheError",
    "SystemClock",
]
