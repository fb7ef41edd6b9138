"""Logging configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from shardcache.shared.constants import Logging


class LoggingSettings(BaseModel):
    """Logging configuration.

    This class manages logging behavior including level, file output
    and console rendering.
    """

    level: str = Field(default=Logging.DEFAULT_LEVEL, description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON-lines log file path")
    use_rich: bool = Field(default=True, description="Render console logs with Rich")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return normalized


__all__ = ["LoggingSettings"]
