"""CLI output and error reporting helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shardcache.services.file_cache.engine import CacheStats
from shardcache.shared.error_handling import log_error_with_context
from shardcache.shared.errors import (
    ErrorCode,
    InvalidCacheKeyError,
    InvalidTTLError,
    ShardCacheError,
)

console = Console()

EXIT_FAILURE = 1
EXIT_USAGE = 2


def to_json(value: Any) -> str:
    """Render a cached value as JSON, falling back to repr for other objects."""
    return orjson.dumps(value, default=repr, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


def output_json_event(event: str, fields: dict[str, Any]) -> None:
    """Output event in JSON format."""
    event_data = {
        "phase": "cache",
        "event": event,
        "ts": datetime.now(timezone.utc).isoformat(),
        "fields": fields,
    }
    typer.echo(orjson.dumps(event_data, default=repr).decode("utf-8"))


def output_json_error(error_code: str, message: str) -> None:
    """Output error in JSON format."""
    error_data = {
        "phase": "error",
        "event": "error",
        "ts": datetime.now(timezone.utc).isoformat(),
        "fields": {
            "error_code": error_code,
            "message": message,
            "level": "ERROR",
        },
    }
    typer.echo(orjson.dumps(error_data).decode("utf-8"))


def show_stats(stats: CacheStats, directory: str) -> None:
    """Print cache statistics as a table."""
    console.print(f"[blue]Cache Statistics[/blue] ({directory})")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total Items", str(stats.total_items))
    table.add_row("Live Items", str(stats.live_items))
    table.add_row("Expired Items", str(stats.expired_items))
    table.add_row("Undecodable Items", str(stats.undecodable_items))
    table.add_row("Cache Size", f"{stats.total_bytes / (1024 * 1024):.2f} MB")

    console.print(table)


def handle_cli_error(error: ShardCacheError, command: str, *, json_output: bool) -> int:
    """Report a failed command and return its exit code.

    Invalid keys, invalid TTLs and malformed arguments are usage errors
    (exit code 2). Every other failure exits with 1.
    """
    if isinstance(error, (InvalidCacheKeyError, InvalidTTLError)):
        exit_code = EXIT_USAGE
    elif error.code == ErrorCode.CLI_INVALID_ARGUMENTS:
        exit_code = EXIT_USAGE
    else:
        exit_code = EXIT_FAILURE

    log_error_with_context(error, command, {"json_output": json_output})

    if json_output:
        output_json_error(error.code.value, error.message)
    else:
        console.print(f"[red]Cache {command} failed: {escape(error.message)}[/red]", soft_wrap=True)

    return exit_code
