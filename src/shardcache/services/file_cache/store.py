"""Atomic file persistence for cache items.

Writers never modify a cache file in place. Content goes to a temp file
in the target's own directory and is renamed over the target, so any
reader sees either the previous file or the new one in full. Concurrent
writers of one key race on the rename and the last one wins.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import time
from pathlib import Path

from shardcache.services.file_cache.bytecode import BytecodeCache
from shardcache.shared.constants import CacheLayout
from shardcache.shared.error_handling import translate_storage_errors

logger = logging.getLogger(__name__)

# Epoch seconds at which this process loaded the cache
PROCESS_START = time.time()


def umask_file_mode() -> int:
    """Return the mode a plain ``open()`` would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# mkstemp always creates 0600 files; cache files get the umask mode instead
FILE_MODE = umask_file_mode()


class AtomicFileStore:
    """Reads, writes and deletes single cache files.

    Args:
        bytecode_cache: Controller to notify after mutations, if any.
        process_start: Epoch seconds at which the hosting process started
            serving, defaulting to when this module was imported. Written
            files are backdated to before this instant so the host's
            freshness check accepts them for precompilation right away.
        file_mode: Permission bits of written files. Defaults to the mode
            the process umask allows, so other users sharing the directory
            can read them.
    """

    def __init__(
        self,
        bytecode_cache: BytecodeCache | None = None,
        process_start: float | None = None,
        file_mode: int | None = None,
    ) -> None:
        self.bytecode_cache = bytecode_cache
        self.process_start = PROCESS_START if process_start is None else process_start
        self.file_mode = FILE_MODE if file_mode is None else file_mode

    @property
    def backdated_mtime(self) -> float:
        return self.process_start - CacheLayout.MTIME_BACKDATE_SECONDS

    def read(self, path: Path) -> bytes | None:
        """Return the file content, or None if the file does not exist."""
        try:
            with translate_storage_errors("read_item", path):
                return path.read_bytes()
        except FileNotFoundError:
            return None

    def write(self, path: Path, data: bytes) -> None:
        """Atomically replace ``path`` with ``data``.

        Raises:
            CacheStorageError: If any step fails; the temp file is removed
        """
        directory = path.parent
        with translate_storage_errors("create_directory", directory, missing_ok=False):
            directory.mkdir(parents=True, exist_ok=True)

        with translate_storage_errors("write_item", path, missing_ok=False):
            fd, tmp_name = tempfile.mkstemp(prefix=CacheLayout.TEMP_PREFIX, dir=directory)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp_name, self.file_mode)
                mtime = self.backdated_mtime
                os.utime(tmp_name, (mtime, mtime))
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise

        if self.bytecode_cache is not None:
            self.bytecode_cache.invalidate(path)
            self.bytecode_cache.compile(path)

    def delete(self, path: Path) -> bool:
        """Remove ``path``.

        Returns:
            True if a file was removed, False if it was already absent

        Raises:
            CacheStorageError: For failures other than absence
        """
        try:
            with translate_storage_errors("delete_item", path):
                path.unlink()
        except FileNotFoundError:
            return False

        if self.bytecode_cache is not None:
            self.bytecode_cache.invalidate(path)
        return True
