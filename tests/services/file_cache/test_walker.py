"""Tests for directory-wide clear and prune walks."""

from __future__ import annotations

import errno
import os
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from shardcache.services.file_cache.store import AtomicFileStore
from shardcache.services.file_cache.walker import DirectoryWalker
from shardcache.shared.errors import CacheStorageError


def _populate(root: Path) -> list[Path]:
    files = [
        root / "a" / "4" / "item1",
        root / "a" / "5" / "item2",
        root / "b" / "0" / "item3",
        root / "b" / "0" / ".tmp-inflight",
    ]
    for path in files:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"data")
    return files


@pytest.fixture
def walker(cache_dir):
    return DirectoryWalker(cache_dir, AtomicFileStore())


class TestClear:
    def test_removes_everything_but_root(self, walker, cache_dir):
        _populate(cache_dir)

        stats = walker.clear()

        assert cache_dir.is_dir()
        assert list(cache_dir.iterdir()) == []
        assert stats.files_removed == 4
        assert stats.directories_removed == 5

    def test_missing_root_is_not_an_error(self, walker, cache_dir):
        stats = walker.clear()

        assert stats.files_removed == 0
        assert not cache_dir.exists()

    def test_non_empty_directory_is_kept(self, walker, cache_dir):
        _populate(cache_dir)
        real_rmdir = os.rmdir

        def racing_rmdir(path):
            if Path(path).name == "a":
                raise OSError(errno.ENOTEMPTY, "Directory not empty")
            real_rmdir(path)

        with patch("shardcache.services.file_cache.walker.os.rmdir", side_effect=racing_rmdir):
            walker.clear()

        assert [p.name for p in cache_dir.iterdir()] == ["a"]

    def test_scan_failure_raises_storage_error(self, walker, cache_dir):
        cache_dir.mkdir()

        def failing_walk(top, topdown, onerror):
            onerror(PermissionError(errno.EACCES, "denied", str(top)))
            return iter(())

        with patch("shardcache.services.file_cache.walker.os.walk", side_effect=failing_walk):
            with pytest.raises(CacheStorageError) as exc_info:
                walker.clear()

        assert exc_info.value.context.operation == "scan_directory"


class TestPrune:
    def test_visits_item_files_but_not_temp_files(self, walker, cache_dir):
        files = _populate(cache_dir)
        visited: list[Path] = []

        def visit(path: Path) -> bool:
            visited.append(path)
            return False

        walker.prune(visit)

        assert sorted(visited) == sorted(files[:3])
        assert all(path.exists() for path in files)

    def test_removes_directories_left_empty(self, walker, cache_dir):
        files = _populate(cache_dir)

        def visit(path: Path) -> bool:
            if path.name in {"item1", "item2"}:
                path.unlink()
                return True
            return False

        stats = walker.prune(visit)

        assert stats.files_removed == 2
        assert stats.directories_removed == 3
        assert not (cache_dir / "a").exists()
        assert files[2].exists()
        assert files[3].exists()

    def test_iter_item_files_skips_temp_files(self, walker, cache_dir):
        files = _populate(cache_dir)

        assert sorted(walker.iter_item_files()) == sorted(files[:3])

    def test_shard_removed_during_walk_is_skipped(self, walker, cache_dir):
        _populate(cache_dir)
        visited: list[Path] = []
        removed: list[Path] = []

        def visit(path: Path) -> bool:
            if not removed:
                # A concurrent clear deletes every other top-level shard
                for shard in cache_dir.iterdir():
                    if shard not in path.parents:
                        shutil.rmtree(shard)
                        removed.append(shard)
            visited.append(path)
            return False

        walker.prune(visit)

        assert len(removed) == 1
        assert not removed[0].exists()
        survivor = visited[0].relative_to(cache_dir).parts[0]
        assert all(path.relative_to(cache_dir).parts[0] == survivor for path in visited)
        assert all(path.exists() for path in visited)

    def test_iteration_tolerates_vanished_shard(self, walker, cache_dir):
        _populate(cache_dir)
        found: list[Path] = []

        for path in walker.iter_item_files():
            if not found:
                for shard in cache_dir.iterdir():
                    if shard not in path.parents:
                        shutil.rmtree(shard)
            found.append(path)

        assert found
        assert all(path.exists() for path in found)
