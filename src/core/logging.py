"""Structured logging (structlog).

`configure_logging` builds a logger and returns it; nothing is stored at
module level. The CLI creates one per invocation and passes it down to the
router, compilers and dispatcher, so each of them can be exercised with any
logger (tests use `structlog.testing.LogCapture`).

Records go to stderr: stdout is reserved for command output. Every record is
bound with the application name, version and process id.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from typing import Any, TextIO

import structlog

from core.app_info import APP_NAME, __version__


class LogLevel(str, Enum):
    """Values accepted by `--log-level`."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    def to_logging(self) -> int:
        # structlog has no level below DEBUG
        return {
            LogLevel.TRACE: logging.DEBUG,
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARN: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
        }[self]

    @classmethod
    def parse(cls, raw: str | None) -> "LogLevel":
        """Unknown values fall back to INFO."""

        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.INFO


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    json_format: bool | None = None,
    stream: TextIO | None = None,
) -> Any:
    """Return a bound structlog logger for one CLI invocation.

    Args:
        level: Minimum level to emit.
        json_format: True for JSON lines, False for console, None to pick
            console only when the stream is a TTY.
        stream: Destination, stderr by default.
    """

    if not isinstance(level, LogLevel):
        level = LogLevel.parse(level)
    stream = stream or sys.stderr
    if json_format is None:
        json_format = not stream.isatty()

    processors: list[Any] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    logger = structlog.wrap_logger(
        structlog.PrintLogger(file=stream),
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level.to_logging()),
        context_class=dict,
    )
    return logger.bind(app=APP_NAME, version=__version__, pid=os.getpid())
