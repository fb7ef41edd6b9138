"""
Pytest configuration and shared fixtures for shardcache tests.

This module provides common fixtures and configuration that can be used
across all test modules in the project.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from shardcache.services.file_cache import FileCache, detect_bytecode_cache
from shardcache.shared.clock import FrozenClock
from shardcache.shared.constants import CacheDefaults, Logging

EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class MutableClock:
    """Clock whose current instant tests can move forward."""

    def __init__(self, instant: datetime = EPOCH) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta: float) -> None:
        self.instant += timedelta(**delta)


class RecordingBytecodeCache:
    """Bytecode cache controller that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []

    def invalidate(self, path: Path) -> None:
        self.calls.append(("invalidate", path))

    def compile(self, path: Path) -> None:
        self.calls.append(("compile", path))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep host configuration and logger state out of every test."""
    monkeypatch.delenv(CacheDefaults.BYTECODE_CACHE_ENV, raising=False)
    detect_bytecode_cache.cache_clear()
    yield
    detect_bytecode_cache.cache_clear()

    package_logger = logging.getLogger(Logging.LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Cache root inside the temporary directory (not created yet)."""
    return temp_dir / "cache"


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock(EPOCH)


@pytest.fixture
def bytecode_cache() -> RecordingBytecodeCache:
    return RecordingBytecodeCache()


@pytest.fixture
def make_cache(cache_dir: Path, clock: MutableClock) -> Callable[..., FileCache]:
    """Factory building caches over the shared directory and clock."""

    def factory(**kwargs: Any) -> FileCache:
        kwargs.setdefault("clock", clock)
        return FileCache(cache_dir, **kwargs)

    return factory


@pytest.fixture
def cache(make_cache: Callable[..., FileCache]) -> FileCache:
    return make_cache()
