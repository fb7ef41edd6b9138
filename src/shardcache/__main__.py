"""Allow ``python -m shardcache``."""

from shardcache.cli.typer_app import app

if __name__ == "__main__":
    app()
