"""
Log output for the ChainWallet command-line client.

Core modules only call ``logging.getLogger(...)``; the front end calls
``setup_logging`` once with the ``[logging]`` config section.  Records go
to stderr so command output on stdout stays parseable, either as a short
line per record (``fmt="human"``) or as one JSON object per line
(``fmt="json"``).  A log file, when configured, is always JSON.

Usage:
    from chainwallet_core.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="logs/chainwallet.log")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# aiohttp and asyncio chatter is never useful to a wallet user
_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.internal", "asyncio")

_LEVEL_COLOURS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL  ] logger: message``, coloured by level when *colour*."""

    def __init__(self, colour: bool = True):
        super().__init__()
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        head = f"{stamp} [{record.levelname:<7}]"
        if self.colour:
            head = f"{_LEVEL_COLOURS.get(record.levelno, '')}{head}{_RESET}"
        parts = [f"{head} {record.name}: {record.getMessage()}"]
        if record.exc_info and record.exc_info[1]:
            parts.append(self.formatException(record.exc_info))
        return "\n".join(parts)


def _console_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(_HumanFormatter(colour=sys.stderr.isatty()))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(path))
    handler.setFormatter(_JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Replace the root logger's handlers with ChainWallet's.

    An unrecognised *level* falls back to INFO.  Third-party loggers in
    ``_QUIET_LOGGERS`` never go below WARNING.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(_console_handler(fmt))
    if log_file:
        root.addHandler(_file_handler(log_file))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))
