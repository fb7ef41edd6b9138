"""Cache configuration model.

This module contains the cache configuration model: where the cache
lives on disk and which TTL applies when callers do not pass one.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from shardcache.shared.constants import CacheDefaults


class CacheSettings(BaseModel):
    """Cache configuration.

    ``default_ttl`` of None means items written without an explicit TTL
    never expire.
    """

    directory: Path = Field(
        default=Path(CacheDefaults.DIRECTORY),
        description="Root directory of the sharded cache",
    )
    default_ttl: int | None = Field(
        default=None,
        gt=0,
        description="Default time-to-live in seconds (None for no expiry)",
    )
    bytecode_cache: str | None = Field(
        default=None,
        description="Dotted 'module:attribute' reference to a bytecode cache controller",
    )


__all__ = ["CacheSettings"]
