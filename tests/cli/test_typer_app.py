"""Tests for the shardcache command-line interface."""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from typer.testing import CliRunner

from shardcache import __version__
from shardcache.cli.typer_app import app
from shardcache.services.file_cache import FileCache
from shardcache.shared.clock import FrozenClock

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch, temp_dir):
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("HOME", str(temp_dir / "home"))
    monkeypatch.delenv("SHARDCACHE_CACHE__DIRECTORY", raising=False)


@pytest.fixture
def invoke(cache_dir):
    def _invoke(*args: str):
        return runner.invoke(app, ["--dir", str(cache_dir), *args])

    return _invoke


@pytest.fixture
def invoke_json(cache_dir):
    def _invoke(*args: str):
        result = runner.invoke(app, ["--dir", str(cache_dir), "--json", *args])
        return result, json.loads(result.stdout.strip().splitlines()[-1])

    return _invoke


class TestMainCallback:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])

        assert "Usage" in result.output


class TestSetAndGet:
    def test_set_then_get(self, invoke):
        result = invoke("set", "user", '{"name": "ada", "langs": ["py"]}')
        assert result.exit_code == 0
        assert "Stored 'user'" in result.stdout

        result = invoke("get", "user")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"name": "ada", "langs": ["py"]}

    def test_values_are_visible_to_library_callers(self, invoke, cache_dir):
        invoke("set", "n", "42")

        assert FileCache(cache_dir).get("n") == 42

    def test_get_miss_prints_default(self, invoke):
        assert json.loads(invoke("get", "missing").stdout) is None
        assert json.loads(invoke("get", "missing", "--default", '"fallback"').stdout) == "fallback"

    def test_non_json_values_are_rendered(self, invoke, cache_dir):
        FileCache(cache_dir).set("tuple", {1, 2})

        result = invoke("get", "tuple")

        assert result.exit_code == 0
        assert "{1, 2}" in result.stdout

    def test_zero_ttl_removes_key(self, invoke, cache_dir):
        invoke("set", "key", '"v"')

        result = invoke("set", "key", '"v2"', "--ttl", "0")

        assert result.exit_code == 0
        assert "was removed" in result.stdout
        assert FileCache(cache_dir).has("key") is False

    def test_json_events(self, invoke_json):
        result, event = invoke_json("set", "key", "[1, 2]", "--ttl", "60")
        assert result.exit_code == 0
        assert event["phase"] == "cache"
        assert event["event"] == "set"
        assert event["fields"] == {"key": "key", "written": True, "ttl": 60}
        assert "ts" in event

        _, event = invoke_json("get", "key")
        assert event["fields"] == {"key": "key", "hit": True, "value": [1, 2]}

        _, event = invoke_json("get", "other")
        assert event["fields"] == {"key": "other", "hit": False, "value": None}


class TestOtherCommands:
    def test_has(self, invoke, invoke_json):
        invoke("set", "none", "null")

        assert invoke("has", "none").stdout.strip() == "true"
        assert invoke("has", "missing").stdout.strip() == "false"
        _, event = invoke_json("has", "none")
        assert event["fields"] == {"key": "none", "exists": True}

    def test_delete(self, invoke, cache_dir):
        invoke("set", "key", "1")

        result = invoke("delete", "key")

        assert result.exit_code == 0
        assert FileCache(cache_dir).has("key") is False

    def test_clear(self, invoke, cache_dir):
        invoke("set", "a", "1")
        invoke("set", "b", "2")

        result = invoke("clear")

        assert result.exit_code == 0
        assert list(cache_dir.iterdir()) == []

    def test_prune_and_stats(self, invoke_json, cache_dir):
        FileCache(cache_dir).set("live", 1)
        FileCache(cache_dir, clock=FrozenClock(datetime(2000, 1, 1))).set("dead", 2, ttl=1)

        _, event = invoke_json("stats")
        assert event["event"] == "stats"
        assert event["fields"]["total_items"] == 2
        assert event["fields"]["live_items"] == 1
        assert event["fields"]["expired_items"] == 1

        result, event = invoke_json("prune")
        assert result.exit_code == 0
        assert event["event"] == "prune"

        _, event = invoke_json("stats")
        assert event["fields"]["total_items"] == 1
        assert event["fields"]["expired_items"] == 0

    def test_stats_table(self, invoke):
        invoke("set", "a", "1")

        result = invoke("stats")

        assert result.exit_code == 0
        assert "Cache Statistics" in result.stdout
        assert "Live Items" in result.stdout


class TestErrors:
    def test_invalid_key_exits_with_usage_code(self, invoke):
        result = invoke("get", "bad:key")

        assert result.exit_code == 2
        assert "not a valid cache key" in result.stdout

    def test_invalid_json_value(self, invoke_json):
        result, event = invoke_json("set", "key", "not json")

        assert result.exit_code == 2
        assert event["phase"] == "error"
        assert event["fields"]["error_code"] == "CLI_INVALID_ARGUMENTS"

    def test_missing_config_file(self, temp_dir):
        result = runner.invoke(app, ["--config", str(temp_dir / "missing.toml"), "stats"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.stdout

    def test_config_file_supplies_directory(self, temp_dir):
        config = temp_dir / "shardcache.toml"
        config.write_text(f'[cache]\ndirectory = "{(temp_dir / "from-config").as_posix()}"\n', encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "set", "key", "1"])

        assert result.exit_code == 0
        assert FileCache(temp_dir / "from-config").get("key") == 1
