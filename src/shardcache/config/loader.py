"""Settings loader.

This module handles:
- Configuration file loading from TOML
- Default configuration file discovery
- Translation of validation failures into CacheConfigurationError
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from shardcache.config.models.settings import Settings
from shardcache.shared.constants import CacheDefaults
from shardcache.shared.errors import ErrorCode, create_config_error

logger = logging.getLogger(__name__)


def default_config_paths() -> list[Path]:
    """Return the configuration files tried when no path is given, in order."""
    return [
        Path("config/shardcache.toml"),
        Path("shardcache.toml"),
        Path.home() / CacheDefaults.HOME_DIR / "config.toml",
    ]


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML configuration file. If None, the
                    first existing file from :func:`default_config_paths` is
                    used, falling back to environment variables and defaults.

    Returns:
        Settings instance loaded from the selected source

    Raises:
        CacheConfigurationError: If an explicit file is missing, cannot be
                                 parsed, or holds invalid values
    """
    if config_path is None:
        for candidate in default_config_paths():
            if candidate.exists():
                config_path = candidate
                break

    try:
        if config_path is None:
            logger.debug("No configuration file found, using environment and defaults")
            return Settings()

        logger.debug("Loading configuration from %s", config_path)
        return Settings.from_toml_file(config_path)

    except FileNotFoundError as e:
        raise create_config_error(
            message=str(e),
            config_key="config_path",
            operation="load_settings",
            original_error=e,
            code=ErrorCode.CONFIG_MISSING,
        ) from e
    except ValidationError as e:
        raise create_config_error(
            message=f"Invalid configuration: {e.error_count()} validation error(s)",
            operation="load_settings",
            original_error=e,
        ) from e
    except (OSError, ValueError) as e:
        # toml.TomlDecodeError is a ValueError
        raise create_config_error(
            message=f"Failed to read configuration file {config_path}: {e}",
            config_key="config_path",
            operation="load_settings",
            original_error=e,
        ) from e


__all__ = ["default_config_paths", "load_settings"]
