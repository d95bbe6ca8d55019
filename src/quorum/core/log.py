"""Process-wide logging setup.

Console output goes through rich; ``structured = true`` switches to one
JSON object per line for log shippers.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.logging import RichHandler

if TYPE_CHECKING:
    from quorum.config.schema import LoggingConfig

_ROOT = "quorum"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install handlers on the ``quorum`` logger according to *config*.

    Idempotent: previously installed handlers are replaced.
    """
    log = logging.getLogger(_ROOT)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    level = logging.getLevelName(config.level.upper())
    log.setLevel(level if isinstance(level, int) else logging.INFO)
    log.propagate = False

    console: logging.Handler
    if config.structured:
        console = logging.StreamHandler()
        console.setFormatter(JsonFormatter())
    else:
        console = RichHandler(show_path=False, rich_tracebacks=True)
    log.addHandler(console)

    if config.file:
        file_handler = logging.FileHandler(config.file, encoding="utf-8")
        file_handler.setFormatter(
            JsonFormatter()
            if config.structured
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        log.addHandler(file_handler)

    return log
