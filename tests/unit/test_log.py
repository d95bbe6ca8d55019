"""Tests for logging setup."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

from rich.logging import RichHandler

from quorum.config.schema import LoggingConfig
from quorum.core.log import JsonFormatter, configure_logging

if TYPE_CHECKING:
    from pathlib import Path


class TestConfigureLogging:
    def test_rich_console_by_default(self) -> None:
        log = configure_logging(LoggingConfig())
        assert log.name == "quorum"
        assert log.level == logging.INFO
        assert any(isinstance(h, RichHandler) for h in log.handlers)
        assert log.propagate is False

    def test_structured_uses_json(self) -> None:
        log = configure_logging(LoggingConfig(structured=True, level="debug"))
        assert log.level == logging.DEBUG
        (handler,) = log.handlers
        assert isinstance(handler.formatter, JsonFormatter)

    def test_idempotent(self) -> None:
        configure_logging(LoggingConfig())
        log = configure_logging(LoggingConfig())
        assert len(log.handlers) == 1

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert configure_logging(LoggingConfig(level="chatty")).level == logging.INFO

    def test_file_handler(self, tmp_path: Path) -> None:
        path = tmp_path / "quorum.log"
        log = configure_logging(LoggingConfig(file=str(path), structured=True))
        logging.getLogger("quorum.engine").info("hello %s", "file")
        for handler in log.handlers:
            handler.flush()
        line = path.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello file"


class TestJsonFormatter:
    def test_fields(self) -> None:
        record = logging.LogRecord(
            "quorum.x", logging.WARNING, __file__, 1, "risk %.1f", (0.9,), None
        )
        entry = json.loads(JsonFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "quorum.x"
        assert entry["message"] == "risk 0.9"
        assert "timestamp" in entry

    def test_exception(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "quorum.x", logging.ERROR, __file__, 1, "oops", (), sys.exc_info()
            )
        entry = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]
