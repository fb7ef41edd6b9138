"""
Cache Configuration Constants

This module provides centralized constants for the file cache: key rules,
on-disk layout and default locations.
"""


class CacheKeys:
    """Cache key validation constants."""

    # Reserved by the common cache-key convention; never allowed in a key
    RESERVED_CHARACTERS = "{}()/\\@:"


class CacheLayout:
    """On-disk layout of the cache directory."""

    # Number of single-hex-character shard directory levels
    SHARD_DEPTH = 2

    # In-flight temp files share the shard directory of their target
    TEMP_PREFIX = ".tmp-"

    # Written files get an mtime this far before process start
    MTIME_BACKDATE_SECONDS = 10


class CacheFormat:
    """Binary item format constants."""

    MAGIC = b"SHC\x01"
    HEADER_FORMAT = "!4sI"  # magic(4) + header length(4)


class CacheDefaults:
    """Default cache settings."""

    DIRECTORY = ".shardcache/cache"
    HOME_DIR = ".shardcache"
    ENV_PREFIX = "SHARDCACHE_"
    BYTECODE_CACHE_ENV = "SHARDCACHE_BYTECODE_CACHE"
