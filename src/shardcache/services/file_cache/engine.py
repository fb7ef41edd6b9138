"""Filesystem-backed key-value cache with TTL expiry.

This module provides :class:`FileCache`, the public entry point of the
storage engine. One file holds one item; see :mod:`.keys` for where a key
lives on disk and :mod:`.codec` for the file format.

Each call reads the clock at most once, so every key in a batch is judged
against the same instant. Batches are not atomic: keys are validated and
written (or deleted) one after another, and an invalid key aborts the
batch with the earlier keys already applied.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from shardcache.services.file_cache import codec
from shardcache.services.file_cache.bytecode import (
    BytecodeCache,
    detect_bytecode_cache,
    resolve_bytecode_cache,
)
from shardcache.services.file_cache.codec import CacheItem
from shardcache.services.file_cache.expiry import TTL, Expiry, expiry_for
from shardcache.services.file_cache.keys import KeyHasher, validate_key
from shardcache.services.file_cache.store import AtomicFileStore
from shardcache.services.file_cache.walker import DirectoryWalker, WalkStats
from shardcache.shared.clock import Clock, SystemClock
from shardcache.shared.errors import (
    CacheDecodeError,
    ErrorContext,
    InfrastructureError,
)
from shardcache.shared.logging import log_operation_error, log_operation_success

if TYPE_CHECKING:
    from shardcache.config.models.settings import Settings

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_MISSING = object()


def _cache_operation(operation: str) -> Callable[[F], F]:
    """Time a public cache operation and record its outcome.

    Storage faults are logged with their context and re-raised unchanged.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: FileCache, *args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(self, *args, **kwargs)
            except InfrastructureError as e:
                log_operation_error(
                    logger=logger,
                    error=e,
                    operation=operation,
                    additional_context={"cache_dir": str(self.directory)},
                )
                raise
            log_operation_success(
                logger=logger,
                operation=operation,
                duration_ms=(time.perf_counter() - started) * 1000,
                context=ErrorContext(operation=operation, additional_data={"cache_dir": self.directory}),
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


@dataclass
class CacheStats:
    """Read-only summary of the items currently on disk."""

    total_items: int = 0
    live_items: int = 0
    expired_items: int = 0
    undecodable_items: int = 0
    total_bytes: int = 0


class FileCache:
    """Sharded file cache shared by any number of processes.

    Args:
        directory: Root of the shard tree. Created lazily on first write.
        default_ttl: TTL applied when ``set`` is called without one.
        logger: Receives a warning for every item that fails to decode.
        clock: Time source for expiry decisions. Naive datetimes are taken
            as UTC.
        bytecode_cache: Controller notified after writes and deletes.
            Defaults to the controller announced by the host environment.
    """

    def __init__(
        self,
        directory: Path | str,
        default_ttl: TTL = None,
        logger: logging.Logger | None = None,
        clock: Clock | None = None,
        bytecode_cache: BytecodeCache | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = default_ttl
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or SystemClock()

        if bytecode_cache is None:
            bytecode_cache = detect_bytecode_cache()

        self._hasher = KeyHasher(self.directory)
        self._store = AtomicFileStore(bytecode_cache)
        self._walker = DirectoryWalker(self.directory, self._store)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> FileCache:
        """Build a cache from loaded settings.

        An explicit ``cache.bytecode_cache`` reference wins over the
        controller announced by the environment.
        """
        reference = settings.cache.bytecode_cache
        return cls(
            settings.cache.directory,
            default_ttl=settings.cache.default_ttl,
            logger=logger,
            clock=clock,
            bytecode_cache=resolve_bytecode_cache(reference) if reference else None,
        )

    def path_for(self, key: str) -> Path:
        """Return the file that holds ``key``."""
        validate_key(key)
        return self._hasher.path_for(key)

    @_cache_operation("cache_get")
    def get(self, key: str, default: Any = None) -> Any:
        return self._get(self._now(), key, default)

    @_cache_operation("cache_get_multiple")
    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        now = self._now()
        return {key: self._get(now, key, default) for key in keys}

    @_cache_operation("cache_set")
    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Store ``value`` under ``key``.

        Returns:
            True if the value was written. False if the TTL was zero or
            negative, in which case any existing item is deleted instead.
        """
        validate_key(key)
        expiry = expiry_for(ttl, self.default_ttl, self._now())

        if expiry is Expiry.IMMEDIATE:
            self._delete(key)
            return False

        self._set(key, value, expiry)
        return True

    @_cache_operation("cache_set_multiple")
    def set_multiple(
        self,
        values: Mapping[str, Any] | Iterable[tuple[str, Any]],
        ttl: TTL = None,
    ) -> bool:
        """Store every key/value pair with one shared expiry.

        Returns:
            True if all values were written, False if the TTL was zero or
            negative and the keys were deleted instead.
        """
        expiry = expiry_for(ttl, self.default_ttl, self._now())
        pairs = values.items() if isinstance(values, Mapping) else values

        if expiry is Expiry.IMMEDIATE:
            for key, _value in pairs:
                self._delete(key)
            return False

        for key, value in pairs:
            self._set(key, value, expiry)
        return True

    @_cache_operation("cache_delete")
    def delete(self, key: str) -> bool:
        self._delete(key)
        return True

    @_cache_operation("cache_delete_multiple")
    def delete_multiple(self, keys: Iterable[str]) -> bool:
        for key in keys:
            self._delete(key)
        return True

    def has(self, key: str) -> bool:
        """Tell whether a live item exists, even if its value is None."""
        return self.get(key, _MISSING) is not _MISSING

    @_cache_operation("cache_clear")
    def clear(self) -> bool:
        stats = self._walker.clear()
        logger.info(
            "Cleared %d cache items and %d directories from %s",
            stats.files_removed,
            stats.directories_removed,
            self.directory,
        )
        return True

    @_cache_operation("cache_prune")
    def prune(self) -> None:
        """Remove expired items and the directories they leave empty."""
        now = self._now()
        stats: WalkStats = self._walker.prune(lambda path: self._load(now, path)[1])
        logger.info(
            "Pruned %d expired cache items and %d directories from %s",
            stats.files_removed,
            stats.directories_removed,
            self.directory,
        )

    @_cache_operation("cache_stats")
    def stats(self) -> CacheStats:
        """Summarize the items on disk without deleting anything."""
        now = self._now()
        stats = CacheStats()
        for path in self._walker.iter_item_files():
            data = self._store.read(path)
            if data is None:
                continue
            stats.total_items += 1
            stats.total_bytes += len(data)
            try:
                item = codec.decode(data, path)
            except CacheDecodeError:
                stats.undecodable_items += 1
                continue
            if item is None or item.is_expired(now):
                stats.expired_items += 1
            else:
                stats.live_items += 1
        return stats

    def _now(self) -> datetime:
        now = self.clock.now()
        # Items written by other processes carry aware expiries
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _get(self, now: datetime, key: str, default: Any) -> Any:
        validate_key(key)
        path = self._hasher.path_for(key)
        item, _removed = self._load(now, path)

        if item is None:
            return default

        if item.key != key:
            self.logger.warning(
                "Cache file %s holds key %r instead of %r, treating as miss",
                path,
                item.key,
                key,
                extra={"file": str(path)},
            )
            return default

        return item.value

    def _load(self, now: datetime, path: Path) -> tuple[CacheItem | None, bool]:
        """Read the item at ``path``, deleting it if it has expired.

        Returns:
            The live item (None on a miss) and whether an expired file was
            removed
        """
        data = self._store.read(path)
        if data is None:
            return None, False

        try:
            item = codec.decode(data, path)
        except CacheDecodeError as e:
            self.logger.warning(
                "Failed to decode cache file %s: %s",
                path,
                e.message,
                extra={"file": str(path), "error_code": e.code.name},
                exc_info=e.original_error or e,
            )
            return None, False

        if item is None:
            return None, False

        if item.is_expired(now):
            return None, self._store.delete(path)

        return item, False

    def _set(self, key: str, value: Any, expiry: datetime | None) -> None:
        validate_key(key)
        path = self._hasher.path_for(key)
        self._store.write(path, codec.encode(key, value, expiry))

    def _delete(self, key: str) -> None:
        validate_key(key)
        self._store.delete(self._hasher.path_for(key))
