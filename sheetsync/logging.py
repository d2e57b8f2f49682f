"""Logging configuration for sheetsync.

Console output goes through rich; an optional plain-text file log can be added
for unattended runs.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = "INFO"

# File log format; the console handler renders its own columns
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SENSITIVE_PATTERNS = [
    (re.compile(r"ghp_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),  # GitHub PAT
    (re.compile(r"gho_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),  # GitHub OAuth
    (re.compile(r"github_pat_[a-zA-Z0-9_]{82}"), "[GITHUB_TOKEN]"),  # Fine-grained PAT
    (re.compile(r"ya29\.[a-zA-Z0-9._-]+"), "[GOOGLE_TOKEN]"),  # Google OAuth access token
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"key=[a-zA-Z0-9._-]+"), "key=[REDACTED]"),  # API key query param
]


def setup_logging(
    level: str | None = None,
    log_file: str | Path | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``sheetsync`` logger.

    Args:
        level: Log level name. Defaults to SHEETSYNC_LOG_LEVEL, then INFO.
        log_file: Optional path of a plain-text log file.
        console: Whether to log to stderr through rich.

    Returns:
        The root sheetsync logger.
    """
    if level is None:
        level = os.environ.get("SHEETSYNC_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("sheetsync")
    logger.setLevel(log_level)
    logger.handlers.clear()

    if console:
        console_handler = RichHandler(show_path=False, markup=False, rich_tracebacks=True)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.debug("Logging initialized (level=%s, file=%s)", level, log_file)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a component logger under the ``sheetsync.`` namespace."""
    if not name.startswith("sheetsync"):
        name = f"sheetsync.{name}"
    return logging.getLogger(name)


def sanitize_for_log(text: str) -> str:
    """Mask tokens and API keys in text about to be logged."""
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result
