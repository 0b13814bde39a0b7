"""Structured logging utilities with JSONL output."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(
    name: str,
    log_file: Path | None = None,
    level: int | str = logging.INFO,
) -> logging.Logger:
    """
    Get a configured logger with both console and file handlers.

    Handlers are only attached the first time a name is configured.

    Args:
        name: Logger name (usually __name__ or the package name)
        log_file: Optional path to JSONL log file
        level: Logging level for the logger and its handlers

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Only configure if not already configured
    if logger.handlers:
        return logger

    # Console handler on stderr so stdout stays clean for hash output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = JSONLFileHandler(Path(log_file))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


class JSONLFileHandler(logging.Handler):
    """Handler that appends log records as JSON Lines."""

    def __init__(self, filepath: Path):
        super().__init__()
        self.filepath = filepath
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def format_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        """Build the JSON object written for one record."""
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Structured fields attached by log_event
        if hasattr(record, "extra"):
            entry.update(record.extra)

        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_entry(record), default=str)
            with open(self.filepath, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def log_event(
    logger: logging.Logger,
    event_type: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log a structured event with additional metadata.

    Args:
        logger: Logger instance
        event_type: Type of event (e.g., "hashing_started", "hashing_failed")
        message: Human-readable message
        level: Logging level of the record
        **kwargs: Additional metadata to include in JSONL output
    """
    if not logger.isEnabledFor(level):
        return

    logger.log(level, message, extra={"extra": {"event_type": event_type, **kwargs}}, stacklevel=2)
