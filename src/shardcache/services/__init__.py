"""shardcache services."""

from __future__ import annotations

from .file_cache import FileCache

__all__ = ["FileCache"]
