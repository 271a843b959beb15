"""Application logging setup."""

import logging
import sys
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the ``mathtutor`` logger hierarchy.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The package root logger
    """
    logger = logging.getLogger("mathtutor")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


def short_session(session_id: Optional[str]) -> str:
    """Shorten a session id for log lines."""
    if not session_id:
        return "<none>"
    return f"{session_id[:8]}…"
