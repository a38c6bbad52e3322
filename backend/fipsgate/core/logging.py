"""Structured logging for fipsgate.

Provides:
- A logger class that accepts structured keyword fields
- Plain output (message only) for the FIPS diagnostic lines
- Human-readable and JSON formatters
- Warnings on stdout, errors on stderr

Usage:
    from fipsgate.core.logging import get_logger

    logger = get_logger(__name__)
    logger.warning("Warning: Disabled OpenSSL FIPS mode", provider="openssl3")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add source location for errors
        if record.levelno >= logging.WARNING:
            log_entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")

        extra_str = ""
        if hasattr(record, "extra_fields") and record.extra_fields:
            extra_str = " | " + " ".join(f"{k}={v}" for k, v in record.extra_fields.items())

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname[:4]

        message = (
            f"{color}{timestamp} {level}{self.RESET} "
            f"[{record.name}] {record.getMessage()}{extra_str}"
        )

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class PlainFormatter(logging.Formatter):
    """Message-only formatter; diagnostic lines appear verbatim."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


FORMATTERS: dict[str, type[logging.Formatter]] = {
    "plain": PlainFormatter,
    "human": HumanFormatter,
    "json": StructuredFormatter,
}


class StructuredLogger(logging.Logger):
    """Logger with structured logging support."""

    def _log_with_extra(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        **kwargs,
    ):
        """Log with extra structured fields."""
        extra = {"extra_fields": kwargs} if kwargs else {}
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.DEBUG):
            self._log_with_extra(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.INFO):
            self._log_with_extra(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.WARNING):
            self._log_with_extra(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.ERROR):
            self._log_with_extra(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.CRITICAL):
            self._log_with_extra(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


class ConsoleHandler(logging.StreamHandler):
    """Stream handler bound to sys.stdout or sys.stderr by name.

    The stream is looked up on every write so a replaced sys.stdout
    (pytest capture, redirect_stdout) is honoured.
    """

    def __init__(self, stream_name: str, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)
        self.stream_name = stream_name

    @property
    def stream(self):
        return getattr(sys, self.stream_name)


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module."""
    logging.setLoggerClass(StructuredLogger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)
    return logger


def setup_logging(level: str = "INFO", log_format: str = "plain"):
    """Configure application logging.

    Records below ERROR are written to stdout, ERROR and above to stderr.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: One of "plain", "human", "json"
    """
    formatter_class = FORMATTERS.get(log_format)
    if formatter_class is None:
        raise ValueError(f"Unknown log format: {log_format}")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove handlers installed by a previous call
    for handler in root_logger.handlers[:]:
        if isinstance(handler, ConsoleHandler):
            root_logger.removeHandler(handler)

    stdout_handler = ConsoleHandler("stdout")
    stdout_handler.addFilter(_BelowLevelFilter(logging.ERROR))
    stdout_handler.setFormatter(formatter_class())

    stderr_handler = ConsoleHandler("stderr", level=logging.ERROR)
    stderr_handler.setFormatter(formatter_class())

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)
