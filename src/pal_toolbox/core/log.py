"""Root logger setup shared by the CLI entry point."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "[%(asctime)s][%(name)s:%(lineno)d] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def level_for(verbosity: int) -> int:
    """Map a ``-v`` count to a logging level (0 = WARNING, 1 = INFO, 2+ = DEBUG)."""
    return _LEVELS[min(max(verbosity, 0), len(_LEVELS) - 1)]


def setup_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Configure the root logger for command-line use.

    Messages go to stderr; with *log_file* they are also appended to that
    file.  Calling this again replaces the previous handlers.

    Args:
        verbosity: Number of ``-v`` flags given.
        log_file: Optional file that receives a copy of every record.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level_for(verbosity),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
