"""Shared error handling utilities for shardcache.

This module translates low-level file system faults into the typed
errors of :mod:`shardcache.shared.errors`. Translation is applied per
call site with :func:`translate_storage_errors`; nothing is installed
globally, so leaving the ``with`` block always restores normal
exception flow.

Design Principles:
- A missing path is never an error here: ``FileNotFoundError`` passes
  through so each caller can treat it as absence.
- Every other ``OSError`` becomes a ``CacheStorageError`` chained to the
  original exception.
- shardcache errors raised inside the block pass through unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from shardcache.shared.errors import (
    ApplicationError,
    CacheStorageError,
    ErrorCode,
    InfrastructureError,
    ShardCacheError,
    create_storage_error,
)

logger = logging.getLogger(__name__)

# Error code used for each storage operation when the fault is not a
# permission problem.
_OPERATION_CODES: dict[str, ErrorCode] = {
    "read_item": ErrorCode.FILE_READ_ERROR,
    "write_item": ErrorCode.FILE_WRITE_ERROR,
    "create_directory": ErrorCode.DIRECTORY_CREATION_FAILED,
    "delete_item": ErrorCode.FILE_DELETE_ERROR,
    "remove_directory": ErrorCode.DIRECTORY_DELETE_ERROR,
    "scan_directory": ErrorCode.FILE_READ_ERROR,
}


def map_os_error(
    error: OSError,
    operation: str,
    path: str | Path,
) -> CacheStorageError:
    """Map an ``OSError`` to a ``CacheStorageError``.

    Args:
        error: The file system exception to map
        operation: Storage operation where the error occurred
        path: File or directory the operation targeted

    Returns:
        CacheStorageError carrying the operation, path and errno

    Example:
        >>> try:
        ...     os.unlink(path)
        ... except PermissionError as e:
        ...     raise map_os_error(e, "delete_item", path) from e
    """
    if isinstance(error, PermissionError):
        code = ErrorCode.PERMISSION_DENIED
    else:
        code = _OPERATION_CODES.get(operation, ErrorCode.CACHE_ERROR)

    return create_storage_error(
        message=f"Cache {operation.replace('_', ' ')} failed for {path}: {error.strerror or error}",
        file_path=path,
        operation=operation,
        original_error=error,
        code=code,
    )


@contextmanager
def translate_storage_errors(
    operation: str,
    path: str | Path,
    *,
    missing_ok: bool = True,
) -> Iterator[None]:
    """Translate file system faults raised inside the block.

    With ``missing_ok`` (the default) ``FileNotFoundError`` is re-raised
    untouched and the caller decides whether absence is acceptable.

    Args:
        operation: Storage operation name, used for the error code and context
        path: File or directory the block operates on
        missing_ok: Let ``FileNotFoundError`` through instead of translating it

    Raises:
        CacheStorageError: For any other ``OSError``
    """
    try:
        yield
    except ShardCacheError:
        raise
    except FileNotFoundError as e:
        if missing_ok:
            raise
        raise map_os_error(e, operation, path) from e
    except OSError as e:
        raise map_os_error(e, operation, path) from e


def log_error_with_context(
    error: ShardCacheError,
    operation: str,
    additional_context: dict[str, Any] | None = None,
) -> None:
    """Log a ShardCacheError with structured context.

    Args:
        error: ShardCacheError instance to log
        operation: Operation name where error occurred
        additional_context: Additional context data for logging
    """
    log_context: dict[str, Any] = {
        "operation": operation,
        "error_code": error.code.value,
        "error_type": type(error).__name__,
    }

    if additional_context:
        log_context.update(additional_context)

    if isinstance(error, ApplicationError):
        logger.warning(
            "Application error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )
    elif isinstance(error, InfrastructureError):
        logger.error(
            "Infrastructure error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )
    else:
        logger.warning(
            "Cache error in %s: %s",
            operation,
            error.message,
            extra={"context": log_context},
        )
