"""
Logger utility for consistent logging across modules
"""

import logging
import sys

from app.core.config import settings


class ColorFormatter(logging.Formatter):
    """Formatter with color support like uvicorn."""

    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        # Work on a copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname + self.RESET + ':':<13}"
        return super().format(record)


def resolve_level(level: int | str | None) -> int:
    """Map a level name (e.g. settings.LOG_LEVEL) or number to a logging level"""
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Get a logger with a uvicorn-like handler for consistent formatting.

    Args:
        name: Logger name (typically __name__)
        level: Logging level (default: settings.LOG_LEVEL)

    Returns:
        Configured logger instance
    """
    resolved = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(resolved)
        handler.setFormatter(ColorFormatter("%(levelname)s [%(name)s:%(funcName)s] %(message)s"))
        logger.addHandler(handler)
        logger.propagate = True

    return logger
