"""
CLI Context Management Module

This module holds the options shared by every ``shardcache`` command.
The context is created by the main callback and handed to commands
through ``typer.Context.obj``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        config_path: Explicit TOML configuration file, if given
        directory: Cache directory overriding the configured one
        log_level: Logging level; None keeps the configured level
        json_output: Whether to output in JSON format
    """

    config_path: Path | None = Field(default=None, description="Configuration file")
    directory: Path | None = Field(default=None, description="Cache directory override")
    log_level: LogLevel | None = Field(default=None, description="Logging level override")
    json_output: bool = Field(default=False, description="Whether to output in JSON format")
