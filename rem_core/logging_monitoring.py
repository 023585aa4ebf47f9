"""
REM Core Logging - Run Logger

This module provides the logger of a merge run. One RunLogger is
constructed per run by the command line and passed explicitly to the
pipeline; it binds corpus and document context to every message and
writes either human readable console lines or JSON lines.
"""

from __future__ import annotations
import sys
import json
import time
import logging
from datetime import datetime
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Any, Optional, TextIO


class LogLevel(Enum):
    """Log levels"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class StructuredFormatter(logging.Formatter):
    """Formatter for structured JSON logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if hasattr(record, "duration_ms"):
            log_data["duration_ms"] = record.duration_ms

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_data, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Formatter for console output with colors"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m"
    }

    def __init__(self, use_colors: bool = True, stream: Optional[TextIO] = None):
        super().__init__()
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console"""
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            level_str = f"{color}{level:8}{reset}"
        else:
            level_str = f"{level:8}"

        message = f"{timestamp} | {level_str} | {record.name} | {record.getMessage()}"

        context = getattr(record, "context", None)
        if context:
            message += " " + " ".join(f"{k}={v}" for k, v in context.items())

        if hasattr(record, "duration_ms"):
            message += f" duration_ms={record.duration_ms:.1f}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class RunLogger:
    """Logger of one merge run with bound context fields"""

    def __init__(
        self,
        name: str = "rem",
        level: LogLevel = LogLevel.INFO,
        enable_console: bool = True,
        enable_json: bool = False,
        stream: Optional[TextIO] = None
    ):
        self.name = name
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level.value)
        self._context: Dict[str, Any] = {}

        if enable_console:
            self._logger.handlers.clear()
            self._logger.propagate = False
            handler = logging.StreamHandler(stream or sys.stderr)
            if enable_json:
                handler.setFormatter(StructuredFormatter())
            else:
                handler.setFormatter(ConsoleFormatter(stream=stream))
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(self, level: LogLevel, message: str, **kwargs):
        """Internal log method"""
        exc_info = kwargs.pop("exc_info", None)
        duration_ms = kwargs.pop("duration_ms", None)

        extra: Dict[str, Any] = {"context": {**self._context, **kwargs}}
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms

        self._logger.log(level.value, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **kwargs):
        """Log debug message"""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message"""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message"""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message"""
        self._log(LogLevel.ERROR, message, **kwargs)

    @contextmanager
    def timed(self, operation: str, level: LogLevel = LogLevel.INFO):
        """Context manager for timing operations"""
        start_time = time.time()
        self._log(level, f"starting {operation}")

        try:
            yield
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._log(LogLevel.ERROR, f"failed {operation}: {e}", duration_ms=duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        self._log(level, f"finished {operation}", duration_ms=duration_ms)

    @contextmanager
    def context(self, **kwargs):
        """Context manager for temporary context"""
        old_context = self._context.copy()
        self._context.update(kwargs)
        try:
            yield
        finally:
            self._context = old_context


def get_run_logger(
    quiet: bool = False,
    debug: bool = False,
    json_lines: bool = False
) -> RunLogger:
    """Create the run logger from command line verbosity flags"""
    if debug:
        level = LogLevel.DEBUG
    elif quiet:
        level = LogLevel.WARNING
    else:
        level = LogLevel.INFO

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    return RunLogger("rem", level=level, enable_json=json_lines)
