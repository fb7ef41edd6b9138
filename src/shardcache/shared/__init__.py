"""shardcache Shared Module.

This package contains shared utilities, constants and error handling used
across shardcache.
"""

__all__ = ["clock", "constants", "error_handling", "errors", "logging"]
