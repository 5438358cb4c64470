"""Logging setup for docrebuild.

Everything logs under the ``docrebuild`` logger. Short CLI runs log to
stderr; the long-running webhook receiver also keeps a rotating file.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = ".temp/logs"
DEFAULT_LOG_FILE = "docrebuild.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_DIR_ENV = "DOCREBUILD_LOG_DIR"
LOG_LEVEL_ENV = "DOCREBUILD_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SECRET_PATTERNS = [
    (re.compile(r"gh[po]_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),
    (re.compile(r"github_pat_[a-zA-Z0-9_]{82}"), "[GITHUB_TOKEN]"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"token=[a-zA-Z0-9._-]+"), "token=[REDACTED]"),
]


def _file_handler(log_dir: str | Path | None, log_file: str, max_bytes: int, backups: int):
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV, DEFAULT_LOG_DIR)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_dir / log_file,
        maxBytes=max_bytes,
        backupCount=backups,
        encoding="utf-8",
    )


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
    file: bool = True,
) -> logging.Logger:
    """Configure the ``docrebuild`` logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_dir: Directory for the log file. Defaults to DOCREBUILD_LOG_DIR,
                 then '.temp/logs'.
        log_file: Log file name.
        max_bytes: Size at which the file rotates.
        backup_count: Number of rotated files kept.
        level: Level name. Defaults to DOCREBUILD_LOG_LEVEL, then INFO.
        console: Log to stderr.
        file: Log to the rotating file.

    Returns:
        The ``docrebuild`` logger.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("docrebuild")
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handlers: list[logging.Handler] = []
    if file:
        handlers.append(_file_handler(log_dir, log_file, max_bytes, backup_count))
    if console:
        # stderr keeps stdout free for command results
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging initialized (level=%s, file=%s, console=%s)", level, file, console)
    return logger


def sanitize_for_log(text: str) -> str:
    """Redact GitHub tokens and bearer credentials from ``text``."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def truncate_output(output: str, max_length: int = 500) -> str:
    """Shorten API error bodies before they are logged."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"... [truncated, {len(output) - max_length} more chars]"
