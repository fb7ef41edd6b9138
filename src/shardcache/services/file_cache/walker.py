"""Directory-wide maintenance of the shard tree.

Both walks are bottom-up, so a directory is handled only after all of
its children. Neither walk is transactional: another process may write
into a shard the walker has already passed, or recreate a directory the
walker is about to remove. Such races leave the new content in place and
are not errors.
"""

from __future__ import annotations

import errno
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from shardcache.services.file_cache.store import AtomicFileStore
from shardcache.shared.constants import CacheLayout
from shardcache.shared.error_handling import map_os_error, translate_storage_errors

logger = logging.getLogger(__name__)

# rmdir reports a non-empty directory as either of these, depending on platform
_NOT_EMPTY_ERRNOS = frozenset({errno.ENOTEMPTY, errno.EEXIST})


@dataclass
class WalkStats:
    """Counts of entries removed by a walk."""

    files_removed: int = 0
    directories_removed: int = 0


class DirectoryWalker:
    """Walks every shard directory under ``root``."""

    def __init__(self, root: Path, store: AtomicFileStore) -> None:
        self.root = root
        self.store = store

    def clear(self) -> WalkStats:
        """Delete every file and every sub-directory; keep the root."""
        stats = WalkStats()
        for directory, subdirs, files in self._walk():
            for name in files:
                if self.store.delete(directory / name):
                    stats.files_removed += 1
            for name in subdirs:
                if self._remove_directory(directory / name):
                    stats.directories_removed += 1
        return stats

    def prune(self, visit: Callable[[Path], bool]) -> WalkStats:
        """Visit every item file, then drop directories left empty.

        Args:
            visit: Called with each item file path; returns True if it
                removed the file. In-flight temp files are skipped.
        """
        stats = WalkStats()
        for directory, subdirs, files in self._walk():
            for name in files:
                if name.startswith(CacheLayout.TEMP_PREFIX):
                    continue
                if visit(directory / name):
                    stats.files_removed += 1
            for name in subdirs:
                if self._remove_directory(directory / name):
                    stats.directories_removed += 1
        return stats

    def iter_item_files(self) -> Iterator[Path]:
        """Yield every item file, skipping in-flight temp files."""
        for directory, _subdirs, files in self._walk():
            for name in files:
                if not name.startswith(CacheLayout.TEMP_PREFIX):
                    yield directory / name

    def _walk(self) -> Iterator[tuple[Path, list[str], list[str]]]:
        def on_error(error: OSError) -> None:
            # Missing root, or a shard removed by a concurrent walker
            if isinstance(error, FileNotFoundError):
                return
            raise map_os_error(error, "scan_directory", error.filename or self.root) from error

        for dirpath, dirnames, filenames in os.walk(self.root, topdown=False, onerror=on_error):
            yield Path(dirpath), dirnames, filenames

    def _remove_directory(self, path: Path) -> bool:
        """Remove ``path`` if it is empty.

        Returns:
            True if the directory was removed
        """
        try:
            with translate_storage_errors("remove_directory", path):
                try:
                    os.rmdir(path)
                except OSError as e:
                    if e.errno not in _NOT_EMPTY_ERRNOS:
                        raise
                    logger.debug("Directory %s is not empty, keeping it", path)
                    return False
        except FileNotFoundError:
            logger.debug("Directory %s already removed", path)
            return False
        return True
