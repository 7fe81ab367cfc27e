"""Logging configuration for the command line entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .constants import CONSOLE_LOG_FORMAT, LOG_FORMAT


class ConsoleFormatter(logging.Formatter):
    """Plain messages for progress, level-prefixed lines for problems."""

    def __init__(self) -> None:
        super().__init__(CONSOLE_LOG_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname}: {message}"
        return message


def setup_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Set up logging configuration."""
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(ConsoleFormatter())
    handlers: list[logging.Handler] = [console_handler]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
