"""Logging setup shared by the Remindly API and CLI.

Every component logs under the ``remindly`` logger tree, for example
``remindly.auth`` or ``remindly.reschedule``. Records go to a rotating file and
optionally to stderr. Credentials (bearer tokens, JWTs, passwords and OAuth
codes) are scrubbed from every formatted line.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "remindly"

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "remindly.log"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"), "[JWT]"),
    (re.compile(r"password=\S+"), "password=[REDACTED]"),
    (re.compile(r"code=[a-zA-Z0-9/._-]+"), "code=[REDACTED]"),
)


def sanitize_for_log(text: str) -> str:
    """Replace credentials in text with placeholders."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFormatter(logging.Formatter):
    """Formatter that scrubs credentials from the final log line."""

    def format(self, record: logging.LogRecord) -> str:
        return sanitize_for_log(super().format(record))


def _resolve_level(level: str | None) -> tuple[str, int]:
    name = (level or os.environ.get("REMINDLY_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        return DEFAULT_LOG_LEVEL, logging.INFO
    return name, numeric


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``remindly`` logger tree.

    Calling this again replaces the handlers from the previous call.

    Args:
        log_dir: Directory for the log file. Falls back to REMINDLY_LOG_DIR,
            then to ./logs. Created if missing.
        log_file: File name inside log_dir.
        max_bytes: Rotate once the file reaches this size.
        backup_count: Rotated files to keep.
        level: Level name such as "debug" or "WARNING". Falls back to
            REMINDLY_LOG_LEVEL, then INFO.
        console: Also write to stderr.

    Returns:
        The ``remindly`` logger.
    """
    directory = Path(log_dir or os.environ.get("REMINDLY_LOG_DIR") or DEFAULT_LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    level_name, numeric_level = _resolve_level(level)

    formatter = RedactingFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            directory / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info("Logging to %s at %s", directory / log_file, level_name)
    return logger


def get_logger(component: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("auth")`` -> ``remindly.auth``."""
    if component != ROOT_LOGGER and not component.startswith(f"{ROOT_LOGGER}."):
        component = f"{ROOT_LOGGER}.{component}"
    return logging.getLogger(component)
