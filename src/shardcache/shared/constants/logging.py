"""Logging-related constants."""


class Logging:
    """Logging configuration constants."""

    LOGGER_NAME = "shardcache"
    DEFAULT_LEVEL = "INFO"
