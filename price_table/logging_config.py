"""Centralized logging configuration for price_table.

Loggers are plain ``logging`` loggers under the ``price_table`` namespace.
Handlers are only installed by :func:`configure_logging`, which the CLI calls
once at startup; library users keep full control otherwise.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "price_table"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
ENV_LOG_LEVEL = "PRICE_TABLE_LOG_LEVEL"
ENV_LOG_FILE = "PRICE_TABLE_LOG_FILE"
ENV_LOG_FORMAT = "PRICE_TABLE_LOG_FORMAT"


def _resolve_level(level: Optional[str]) -> int:
    level_str = level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL
    return getattr(logging, level_str.upper(), logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``).

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Computed schedule", extra={"periods": 12})
    """
    return logging.getLogger(name)


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
) -> None:
    """Configure handlers for the whole ``price_table`` package.

    Args:
        level: Logging level name. Defaults to ``PRICE_TABLE_LOG_LEVEL`` or
               WARNING.
        log_file: Optional path of a rotating log file. Defaults to
                  ``PRICE_TABLE_LOG_FILE`` when set.
        console: Whether to log to stderr.
        max_bytes: Maximum size of the log file before rotation.
        backup_count: Number of rotated files to keep.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    _close_handlers(logger)

    log_level = _resolve_level(level)
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT), datefmt=DEFAULT_DATE_FORMAT
    )

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_file_path = log_file or os.getenv(ENV_LOG_FILE)
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    # Avoid duplicate records when the root logger is configured too
    logger.propagate = False


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def reset_logging() -> None:
    """Remove handlers installed by :func:`configure_logging`."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    _close_handlers(logger)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
