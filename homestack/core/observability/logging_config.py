"""
Logging configuration — one-time setup for the CLI process.

``main.py`` calls ``setup_logging`` once; every module logs through
``logging.getLogger(__name__)`` and inherits the handlers set here.

Console level precedence:
    CLI flag  >  HOMESTACK_LOG_LEVEL  >  WARNING

A second, file-only level (HOMESTACK_LOG_FILE / HOMESTACK_LOG_FILE_LEVEL)
lets a quiet console coexist with a full command trace on disk.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "HOMESTACK_LOG_LEVEL"
ENV_LOG_FILE = "HOMESTACK_LOG_FILE"
ENV_LOG_FILE_LEVEL = "HOMESTACK_LOG_FILE_LEVEL"

# ── Formats per console level ───────────────────────────────────

# (threshold, format, datefmt): first threshold >= level wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d | %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = logging.Formatter(
    "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

_THIRD_PARTY = ("asyncio", "urllib3")


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console handler and, optionally, a file handler.

    Args:
        level: Console level name; ``None`` reads HOMESTACK_LOG_LEVEL.
        log_file: Path for a full-detail log; ``None`` reads HOMESTACK_LOG_FILE.
        log_file_level: Level for the file; defaults to the console level.
        quiet_third_party: Pin foreign loggers at WARNING unless debugging.
    """
    console_level = _parse_level(level or os.environ.get(ENV_LOG_LEVEL))
    log_file = log_file or os.environ.get(ENV_LOG_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_LOG_FILE_LEVEL)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root.addHandler(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)
    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _THIRD_PARTY:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A closed stderr during interrupt must not produce logging tracebacks
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = next((f, d) for threshold, f, d in _CONSOLE_FORMATS if level <= threshold)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_FILE_FORMAT)
    return handler


def _parse_level(name: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    value = logging.getLevelName(name.upper()) if name else None
    return value if isinstance(value, int) else logging.WARNING
