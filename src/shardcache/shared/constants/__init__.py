"""
shardcache Constants Module

This module provides centralized constants for the shardcache package.
All magic values are defined here to keep the storage engine, the
configuration layer and the CLI consistent.
"""

from .cache import (
    CacheDefaults,
    CacheFormat,
    CacheKeys,
    CacheLayout,
)
from .logging import Logging

__all__ = [
    "CacheDefaults",
    "CacheFormat",
    "CacheKeys",
    "CacheLayout",
    "Logging",
]
