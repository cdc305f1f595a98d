"""Logging setup for CloudResolve."""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from colorama import Fore, Style

ROOT_LOGGER = "cloudresolve"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log files."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        data = getattr(record, "extra_data", None)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text records, colored by level on a terminal."""

    LEVEL_COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.MAGENTA,
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{Style.RESET_ALL}"

        # Drop the project prefix: "resolver" reads better than "cloudresolve.resolver"
        name = record.name
        if name.startswith(ROOT_LOGGER + "."):
            name = name[len(ROOT_LOGGER) + 1:]

        line = f"{timestamp} {level} {name}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class CloudResolveLogger(logging.Logger):
    """Logger that can attach a structured payload to a record."""

    def info_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if data:
            kwargs.setdefault("extra", {})["extra_data"] = data
        self.info(msg, **kwargs)

    def warning_with_data(self, msg: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if data:
            kwargs.setdefault("extra", {})["extra_data"] = data
        self.warning(msg, **kwargs)


logging.setLoggerClass(CloudResolveLogger)


def setup_logger(
    name: str = ROOT_LOGGER,
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> CloudResolveLogger:
    """
    Configure the project logger.

    Console records go to stderr so result lines on stdout can be piped
    on their own. Calling this again replaces the previous handlers.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: File output format ('json' or 'text')
        log_file: Path to a rotating log file (optional)
        max_size_mb: Maximum log file size in MB
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(TextFormatter(use_colors=sys.stderr.isatty()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter(use_colors=False))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER) -> CloudResolveLogger:
    """
    Get a logger under the project namespace.

    ``get_logger("resolver")`` returns ``cloudresolve.resolver``, which has
    no handlers of its own and propagates to the project logger.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
