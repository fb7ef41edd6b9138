"""shardcache Configuration Module

This module provides unified access to configuration models and settings
loading.
"""

from __future__ import annotations

from .loader import default_config_paths, load_settings
from .models import CacheSettings, LoggingSettings, Settings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "default_config_paths",
    "load_settings",
]
