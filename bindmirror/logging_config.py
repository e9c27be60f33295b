"""
Logging Configuration — Console logging for mirror runs.

Engine modules attach the mirror point (and sometimes the status) a message
is about via ``extra={"point": ...}``. Both output styles carry it:

- text: ``12:34:56 INFO    controller  Declared /etc/ssh/  point=/etc/ssh/``
- json: one object per line with ``point``/``status`` keys, for journald

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)
- NO_COLOR: disable colors in text output

CLI flags --log-level / --log-format take precedence.

## Usage

    from bindmirror.logging_config import setup_logging

    setup_logging()  # once, from the CLI group
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Record attributes set through ``extra=`` that are worth showing
EXTRA_FIELDS = ("point", "status")


def record_extras(record: logging.LogRecord) -> Dict[str, str]:
    """The EXTRA_FIELDS present on a record, as strings."""
    return {
        name: str(getattr(record, name))
        for name in EXTRA_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, timestamped when the record was made."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_extras(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class HumanFormatter(logging.Formatter):
    """
    Short lines for an operator at a terminal.

    The logger name is cut to its last component (``controller``,
    ``linux``...) and extras trail the message as ``key=value``.
    """

    COLORS = {
        "DEBUG": "\033[2m",     # Dim
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool | None = None):
        super().__init__()
        if color is None:
            color = sys.stderr.isatty() and not os.environ.get("NO_COLOR")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:7}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        source = record.name.rsplit(".", 1)[-1]
        line = f"{clock} {level} {source:<11} {record.getMessage()}"

        extras = record_extras(record)
        if extras:
            line += "  " + " ".join(f"{k}={v}" for k, v in extras.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        format_type: "json" or "text". Defaults to LOG_FORMAT or text.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    format_name = (format_type or os.environ.get("LOG_FORMAT") or "text").lower()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if format_name == "json" else HumanFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={level_name}, format={format_name}"
    )
