"""Sharded, filesystem-backed key-value cache with TTL expiry.

Package structure:
- keys: Key validation and key-to-path mapping
- codec: On-disk item format
- expiry: TTL to expiry conversion
- store: Atomic single-file persistence
- walker: Directory-wide clear and prune
- bytecode: Host bytecode cache collaborator
- engine: FileCache, the public cache interface
"""

from __future__ import annotations

from .bytecode import BytecodeCache, detect_bytecode_cache
from .codec import CacheItem
from .engine import CacheStats, FileCache
from .expiry import Expiry, expiry_for
from .keys import KeyHasher, validate_key

__all__ = [
    "BytecodeCache",
    "CacheItem",
    "CacheStats",
    "Expiry",
    "FileCache",
    "KeyHasher",
    "detect_bytecode_cache",
    "expiry_for",
    "validate_key",
]
