"""shardcache Error Handling Module

This module defines the error handling system for shardcache, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved

Only validation and storage faults ever reach callers of the cache.
Decode faults (CacheDecodeError) are recovered inside the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Union

from shardcache.shared.constants import CacheKeys

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for shardcache.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # File System Errors
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DIRECTORY_CREATION_FAILED = "DIRECTORY_CREATION_FAILED"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"
    FILE_DELETE_ERROR = "FILE_DELETE_ERROR"
    DIRECTORY_DELETE_ERROR = "DIRECTORY_DELETE_ERROR"

    # Validation Errors
    INVALID_CACHE_KEY = "INVALID_CACHE_KEY"
    INVALID_TTL = "INVALID_TTL"

    # Cache Errors
    CACHE_ERROR = "CACHE_ERROR"
    CACHE_CORRUPTED = "CACHE_CORRUPTED"
    CACHE_SERIALIZATION_ERROR = "CACHE_SERIALIZATION_ERROR"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # CLI Errors
    CLI_INVALID_ARGUMENTS = "CLI_INVALID_ARGUMENTS"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, datetime and timedelta to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, datetime):
            coerced[key] = val.isoformat()
        elif isinstance(val, timedelta):
            coerced[key] = val.total_seconds()
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, datetime, timedelta are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization into structured logs.

    Attributes:
        file_path: Optional file path associated with the error
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as dict for logging.

        ``additional_data`` is always present in the output, never None.
        """
        data: dict[str, Any] = {}
        if self.file_path is not None:
            data["file_path"] = self.file_path
        if self.operation is not None:
            data["operation"] = self.operation
        data["additional_data"] = self.additional_data or {}
        return data


ErrorContext = ErrorContextModel


class ShardCacheError(Exception):
    """Base exception class for all shardcache errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ShardCacheError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(ShardCacheError):
    """Domain-specific errors.

    These errors occur when cache rules are violated: reserved characters
    in a key, an unsupported TTL, a value that cannot be stored.
    """


class InfrastructureError(ShardCacheError):
    """Infrastructure-related errors.

    These errors occur when interacting with the file system.
    """


class ApplicationError(ShardCacheError):
    """Application-level errors (configuration, CLI usage)."""


class InvalidCacheKeyError(DomainError):
    """Raised when a key contains a reserved character or cannot be encoded."""

    def __init__(self, key: Any, reason: str | None = None) -> None:
        self.key = key
        if reason is None:
            message = (
                f'"{key}" is not a valid cache key because it contains at least one '
                f"of the reserved characters: {CacheKeys.RESERVED_CHARACTERS}"
            )
        else:
            # repr escapes characters the message could not otherwise carry
            message = f"{key!r} is not a valid cache key because it {reason}"
        super().__init__(
            ErrorCode.INVALID_CACHE_KEY,
            message,
            ErrorContext(operation="validate_key"),
        )


class InvalidTTLError(DomainError):
    """Raised when a TTL is neither None, an int nor a timedelta."""

    def __init__(self, ttl: Any) -> None:
        self.ttl = ttl
        super().__init__(
            ErrorCode.INVALID_TTL,
            f"TTL must be None, int seconds or timedelta, got {type(ttl).__name__}",
            ErrorContext(
                operation="expiry_for",
                additional_data={"ttl_type": type(ttl).__name__},
            ),
        )


class CacheSerializationError(DomainError):
    """Raised when a value cannot be encoded into a cache item."""


class CacheDecodeError(DomainError):
    """Raised by the codec when stored content cannot be reconstructed.

    The cache engine never lets this escape: it logs a warning and
    reports a miss instead.
    """


class CacheStorageError(InfrastructureError):
    """File system fault other than a missing path."""


class CacheConfigurationError(ApplicationError):
    """Invalid settings or bytecode cache reference."""


# Convenience functions for common error scenarios
def create_storage_error(
    message: str,
    file_path: str | Path,
    operation: str,
    original_error: OSError,
    code: ErrorCode = ErrorCode.FILE_READ_ERROR,
) -> CacheStorageError:
    """Create a storage error with context."""
    context = ErrorContext(
        file_path=str(file_path),
        operation=operation,
        additional_data={
            "errno": original_error.errno or 0,
            "original_error_type": type(original_error).__name__,
        },
    )
    return CacheStorageError(code, message, context, original_error)


def create_decode_error(
    message: str,
    file_path: str | Path | None = None,
    original_error: Exception | None = None,
) -> CacheDecodeError:
    """Create a decode error with context."""
    context = ErrorContext(
        file_path=str(file_path) if file_path is not None else None,
        operation="decode_item",
    )
    return CacheDecodeError(
        ErrorCode.CACHE_CORRUPTED,
        message,
        context,
        original_error,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    code: ErrorCode = ErrorCode.CONFIG_INVALID,
) -> CacheConfigurationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return CacheConfigurationError(
        code,
        message,
        context,
        original_error,
    )
