"""
shardcache Typer CLI Application

Command-line access to a cache directory: read, write and delete single
items, and run the directory-wide clear, prune and stats maintenance.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from rich.markup import escape

from shardcache import __version__
from shardcache.cli.context import CliContext, LogLevel
from shardcache.cli.output import (
    console,
    handle_cli_error,
    output_json_event,
    show_stats,
    to_json,
)
from shardcache.config import load_settings
from shardcache.services.file_cache import FileCache
from shardcache.shared.constants import Logging
from shardcache.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
    ShardCacheError,
)
from shardcache.shared.logging import setup_structured_logger

_MISS = object()


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(f"shardcache {__version__}")
        raise typer.Exit


app = typer.Typer(
    name="shardcache",
    help="Inspect and maintain a sharded file cache directory.",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
        dir_okay=False,
    ),
    directory: Optional[Path] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Cache directory (overrides the configured one)",
        file_okay=False,
    ),
    log_level: Optional[LogLevel] = typer.Option(
        None,
        "--log-level",
        help="Logging level (overrides the configured one)",
        case_sensitive=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output results in JSON format",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Process the common options before any command runs."""
    ctx.obj = CliContext(
        config_path=config,
        directory=directory,
        log_level=log_level,
        json_output=json_output,
    )


@contextmanager
def _handle_errors(cli: CliContext, command: str) -> Iterator[None]:
    try:
        yield
    except ShardCacheError as e:
        exit_code = handle_cli_error(e, command, json_output=cli.json_output)
        raise typer.Exit(exit_code) from e


def _open_cache(cli: CliContext) -> FileCache:
    """Load settings, apply command-line overrides and build the cache."""
    settings = load_settings(cli.config_path)
    if cli.directory is not None:
        settings.cache = settings.cache.model_copy(update={"directory": cli.directory})

    level = cli.log_level.value if cli.log_level is not None else settings.logging.level
    logger = setup_structured_logger(
        Logging.LOGGER_NAME,
        level,
        settings.logging.file,
        use_rich_console=settings.logging.use_rich,
    )
    return FileCache.from_settings(settings, logger=logger)


def _parse_json(text: str, argument: str) -> Any:
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise ApplicationError(
            ErrorCode.CLI_INVALID_ARGUMENTS,
            f"{argument} must be valid JSON: {e}",
            ErrorContext(operation="parse_argument", additional_data={"argument": argument}),
            e,
        ) from e


@app.command("get")
def get_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key"),
    default: Optional[str] = typer.Option(
        None,
        "--default",
        help="JSON value printed when the key is missing or expired",
    ),
) -> None:
    """Print the value stored under KEY."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "get"):
        fallback = _parse_json(default, "--default") if default is not None else None
        value = _open_cache(cli).get(key, _MISS)
        hit = value is not _MISS
        if not hit:
            value = fallback

        if cli.json_output:
            output_json_event("get", {"key": key, "hit": hit, "value": value})
        else:
            typer.echo(to_json(value))


@app.command("set")
def set_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key"),
    value: str = typer.Argument(..., help="Value to store, as JSON"),
    ttl: Optional[int] = typer.Option(
        None,
        "--ttl",
        help="Time to live in seconds; zero or negative deletes the key",
    ),
) -> None:
    """Store a JSON VALUE under KEY."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "set"):
        parsed = _parse_json(value, "VALUE")
        written = _open_cache(cli).set(key, parsed, ttl)

        if cli.json_output:
            output_json_event("set", {"key": key, "written": written, "ttl": ttl})
        elif written:
            console.print(f"[green]Stored '{escape(key)}'[/green]", soft_wrap=True)
        else:
            console.print(f"[yellow]TTL is not positive, '{escape(key)}' was removed[/yellow]", soft_wrap=True)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key"),
) -> None:
    """Delete KEY from the cache."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "delete"):
        _open_cache(cli).delete(key)

        if cli.json_output:
            output_json_event("delete", {"key": key})
        else:
            console.print(f"[green]Deleted '{escape(key)}'[/green]", soft_wrap=True)


@app.command("has")
def has_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key"),
) -> None:
    """Tell whether KEY holds a live item."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "has"):
        exists = _open_cache(cli).has(key)

        if cli.json_output:
            output_json_event("has", {"key": key, "exists": exists})
        else:
            typer.echo("true" if exists else "false")


@app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Delete every item and directory below the cache root."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "clear"):
        cache = _open_cache(cli)
        cache.clear()

        if cli.json_output:
            output_json_event("clear", {"directory": str(cache.directory)})
        else:
            console.print(f"[green]Cache cleared[/green] ({cache.directory})", soft_wrap=True)


@app.command("prune")
def prune_command(ctx: typer.Context) -> None:
    """Delete expired items and the directories they leave empty."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "prune"):
        cache = _open_cache(cli)
        cache.prune()

        if cli.json_output:
            output_json_event("prune", {"directory": str(cache.directory)})
        else:
            console.print(f"[green]Expired items pruned[/green] ({cache.directory})", soft_wrap=True)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Summarize the items on disk without deleting anything."""
    cli: CliContext = ctx.obj
    with _handle_errors(cli, "stats"):
        cache = _open_cache(cli)
        stats = cache.stats()

        if cli.json_output:
            output_json_event("stats", {"directory": str(cache.directory), **asdict(stats)})
        else:
            show_stats(stats, str(cache.directory))


if __name__ == "__main__":
    app()
