"""
Structured JSON logging.

Logs go to stdout, one JSON object per line, so log collectors can index
fields such as the tool name, caller and outcome of each dispatch. Modules
attach structured fields through `extra`:

    logger.info("Tool call completed", extra={"event_data": {"tool": "search"}})

which renders as:

    {"timestamp": "...", "level": "INFO", "logger": "xtrn.server",
     "message": "Tool call completed", "tool": "search"}
"""

import json
import logging
import sys


class JSONLogFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "event_data"):
            log_entry.update(record.event_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "info") -> None:
    """Install the JSON formatter on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter())
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )
