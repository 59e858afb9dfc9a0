"""
Tests for the logging module.

Tests verify:
- JSON output carries event, level, service and bound run context
- DEBUG logs are suppressed at INFO level
- LogContext binds and unbinds for sync and async blocks
"""

import json

import pytest
import structlog

from publish_spine.core.logging import LogContext, configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True)
        structlog.get_logger("tests").info("page_written", path="index.html")

        (record,) = _json_lines(capsys.readouterr().err)
        assert record["event"] == "page_written"
        assert record["path"] == "index.html"
        assert record["level"] == "info"
        assert record["service"] == "publish-spine"
        assert "timestamp" in record

    def test_debug_suppressed_at_info(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = structlog.get_logger("tests")
        logger.debug("hidden")
        logger.warning("shown")

        events = [r["event"] for r in _json_lines(capsys.readouterr().err)]
        assert events == ["shown"]

    def test_logs_go_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True)
        structlog.get_logger("tests").info("hello")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err


class TestLogContext:
    def test_binds_within_block(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = structlog.get_logger("tests")
        with LogContext(run_id="01ABC", mode="rebuild"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = _json_lines(capsys.readouterr().err)
        assert inside["run_id"] == "01ABC"
        assert inside["mode"] == "rebuild"
        assert "run_id" not in outside

    @pytest.mark.asyncio
    async def test_async_block(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = structlog.get_logger("tests")
        async with LogContext(document_id="a1"):
            logger.info("inside")

        (record,) = _json_lines(capsys.readouterr().err)
        assert record["document_id"] == "a1"
