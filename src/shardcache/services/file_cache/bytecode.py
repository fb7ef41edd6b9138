"""Bytecode cache collaborator.

Some hosts keep a precompiled, in-memory copy of files keyed by path.
After every write the cache asks such a controller to drop its stale
entry and recompile the file; after every delete it asks it to drop the
entry. The controller itself lives in the host.

A host announces its controller through the ``SHARDCACHE_BYTECODE_CACHE``
environment variable, holding a ``module:attribute`` reference to either
a controller instance or a zero-argument factory returning one.
Availability is decided once per process.
"""

from __future__ import annotations

import functools
import importlib
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from shardcache.shared.constants import CacheDefaults
from shardcache.shared.errors import create_config_error

logger = logging.getLogger(__name__)


@runtime_checkable
class BytecodeCache(Protocol):
    """Host-side cache of precompiled file contents."""

    def invalidate(self, path: Path) -> None: ...

    def compile(self, path: Path) -> None: ...


def resolve_bytecode_cache(reference: str) -> BytecodeCache:
    """Import the controller named by a ``module:attribute`` reference.

    Raises:
        CacheConfigurationError: If the reference is malformed, cannot be
            imported, or does not name a controller
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise create_config_error(
            message=f"Bytecode cache reference must look like 'module:attribute', got '{reference}'",
            config_key=CacheDefaults.BYTECODE_CACHE_ENV,
            operation="resolve_bytecode_cache",
        )

    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise create_config_error(
            message=f"Cannot load bytecode cache '{reference}': {e!s}",
            config_key=CacheDefaults.BYTECODE_CACHE_ENV,
            operation="resolve_bytecode_cache",
            original_error=e,
        ) from e

    controller = target
    # Classes expose invalidate/compile too, so only instances count as controllers
    if isinstance(target, type) or not isinstance(target, BytecodeCache):
        controller = target() if callable(target) else None
    if isinstance(controller, type) or not isinstance(controller, BytecodeCache):
        raise create_config_error(
            message=f"'{reference}' does not provide invalidate() and compile()",
            config_key=CacheDefaults.BYTECODE_CACHE_ENV,
            operation="resolve_bytecode_cache",
        )
    return controller


@functools.lru_cache(maxsize=None)
def detect_bytecode_cache() -> BytecodeCache | None:
    """Return the host's bytecode cache controller, or None.

    The environment is consulted on the first call only; the result is
    kept for the lifetime of the process.
    """
    reference = os.environ.get(CacheDefaults.BYTECODE_CACHE_ENV, "").strip()
    if not reference:
        return None

    controller = resolve_bytecode_cache(reference)
    logger.debug("Using bytecode cache controller %s", reference)
    return controller
