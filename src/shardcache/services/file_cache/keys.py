"""Key validation and key-to-path mapping.

A key maps to ``root/h[0]/h[1]/h[2:]`` where ``h`` is the lowercase hex
XXH3-128 digest of the UTF-8 encoded key. The two single-character
directory levels bound the number of entries per directory to 16 * 16
shards.
"""

from __future__ import annotations

import re
from pathlib import Path

import xxhash

from shardcache.shared.constants import CacheKeys, CacheLayout
from shardcache.shared.errors import InvalidCacheKeyError

_RESERVED_PATTERN = re.compile(f"[{re.escape(CacheKeys.RESERVED_CHARACTERS)}]")


def validate_key(key: str) -> None:
    """Reject keys containing a reserved character.

    The empty string is a valid key. Keys with lone surrogates are rejected
    as well since they have no UTF-8 form to hash or store.

    Raises:
        InvalidCacheKeyError: If ``key`` is not a string, contains one of
            ``{}()/\\@:`` or cannot be encoded as UTF-8
    """
    if not isinstance(key, str) or _RESERVED_PATTERN.search(key):
        raise InvalidCacheKeyError(key)
    try:
        key.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidCacheKeyError(key, reason="cannot be encoded as UTF-8") from e


def key_digest(key: str) -> str:
    """Return the 32-character hex digest used to place ``key`` on disk."""
    return xxhash.xxh3_128_hexdigest(key.encode("utf-8"))


class KeyHasher:
    """Maps validated keys to sharded file paths under a root directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        digest = key_digest(key)
        depth = CacheLayout.SHARD_DEPTH
        return self.root.joinpath(*digest[:depth], digest[depth:])
