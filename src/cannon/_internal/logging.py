"""Logging setup for cannon.

Attempt and error lines go to stderr as ``YYYY/MM/DD HH:MM:SS message``.
Stdout carries only the final summary line.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


class _StderrHandler(logging.StreamHandler):
    """Stream handler that writes to whatever ``sys.stderr`` is at emit time."""

    @property  # type: ignore[override]
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def setup_logging(*, verbose: bool = False) -> logging.Logger:
    """Configure and return the root ``cannon`` logger.

    Calling it again only changes the level.

    Args:
        verbose: Also emit DEBUG records (worker start/exit, dispatch timing).

    Returns:
        The ``cannon`` logger.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger("cannon")
    logger.setLevel(level)

    if not logger.handlers:
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``cannon.<name>`` child logger, e.g. ``cannon.engine.pool``."""
    return logging.getLogger(f"cannon.{name}")
