"""Logging configuration for the command-line tool."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "%(message)s"
LOG_FILE_NAME = "meiunpack.log"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Path] = None,
    console: bool = True
) -> None:
    """
    Configure root logging.

    Args:
        level: Root log level (name or number)
        log_dir: Directory for the log file (None = no file logging)
        console: Also log to stderr
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handlers = []

    if log_dir is not None:
        try:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                log_dir / LOG_FILE_NAME,
                encoding='utf-8',
                mode='a'
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(console_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=level, handlers=handlers, force=True)
