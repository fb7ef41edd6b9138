"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging

from rich.logging import RichHandler

from shardcache.shared.errors import ErrorCode, ErrorContext, ShardCacheError
from shardcache.shared.logging import (
    StructuredFormatter,
    log_operation_error,
    log_operation_success,
    setup_structured_logger,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("shardcache.test", logging.WARNING, __file__, 1, "Hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_renders_json_line(self):
        entry = json.loads(StructuredFormatter().format(_record()))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "shardcache.test"
        assert entry["message"] == "Hello world"
        assert "timestamp" in entry

    def test_includes_structured_fields(self):
        entry = json.loads(
            StructuredFormatter().format(
                _record(error_code="CACHE_CORRUPTED", operation="cache_get", duration_ms=1.5, file="/x")
            )
        )

        assert entry["error_code"] == "CACHE_CORRUPTED"
        assert entry["operation"] == "cache_get"
        assert entry["duration_ms"] == 1.5
        assert entry["file"] == "/x"


class TestSetupStructuredLogger:
    def test_rich_console_handler(self):
        logger = setup_structured_logger("shardcache", "debug")

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_json_console_and_file_handler(self, temp_dir):
        log_file = temp_dir / "cache.log"
        logger = setup_structured_logger("shardcache", "INFO", str(log_file), use_rich_console=False)

        logger.info("written")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert all(isinstance(h.formatter, StructuredFormatter) for h in logger.handlers)
        assert json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])["message"] == "written"

        for handler in logger.handlers:
            handler.close()

    def test_repeated_setup_replaces_handlers(self):
        setup_structured_logger("shardcache", "INFO")
        logger = setup_structured_logger("shardcache", "INFO")

        assert len(logger.handlers) == 1


class TestOperationHelpers:
    def test_log_operation_error(self, caplog):
        logger = logging.getLogger("tests.logging")
        error = ShardCacheError(
            ErrorCode.FILE_WRITE_ERROR,
            "write failed",
            ErrorContext(file_path="/x", operation="write_item"),
        )

        with caplog.at_level(logging.DEBUG, logger="tests.logging"):
            log_operation_error(logger, error, additional_context={"cache_dir": "/cache"})

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.error_code == "FILE_WRITE_ERROR"
        assert record.operation == "write_item"
        assert record.context["cache_dir"] == "/cache"
        assert record.context["file_path"] == "/x"

    def test_log_operation_success_is_debug(self, caplog):
        logger = logging.getLogger("tests.logging")

        with caplog.at_level(logging.DEBUG, logger="tests.logging"):
            log_operation_success(logger, "cache_get", 2.0, context=ErrorContext(operation="cache_get"))

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.duration_ms == 2.0
        assert record.context == {"operation": "cache_get", "additional_data": {}}
