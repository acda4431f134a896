"""Logging setup shared by the CLI, the service and the pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

ROOT_LOGGER = "assessor"
CONSOLE_FORMAT = "[assessor] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``assessor.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install console (and optionally file) handlers on the package logger.

    Calling this again replaces the previous handlers, so repeated CLI
    invocations in one process do not duplicate output. ``verbose`` switches
    to DEBUG, which includes assessment state transitions.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(sink)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger"]
