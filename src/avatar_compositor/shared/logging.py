"""Centralized logging utilities."""

import logging
import sys
from typing import Optional, Union
from pathlib import Path

DEFAULT_FORMAT = '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'


def setup_logger(
    name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        level: Logging level (int or name such as "DEBUG")
        log_file: Optional file to write logs to
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Handlers live on the top-level package logger (``avatar_compositor``);
    module loggers propagate to it. The first call configures it with
    defaults, and ``setup_logger`` may reconfigure it later.
    """
    logger = logging.getLogger(name)
    if logger.handlers or _has_configured_parent(logger):
        return logger
    setup_logger(name.split('.')[0])
    return logger


def _has_configured_parent(logger: logging.Logger) -> bool:
    parent = logger.parent
    while parent is not None and parent.name != 'root':
        if parent.handlers:
            return True
        parent = parent.parent
    return False


class JobLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the job id, e.g. ``[3f2a...] Downloading``."""

    def __init__(self, logger: logging.Logger, job_id: str):
        super().__init__(logger, {'job_id': job_id})
        self.job_id = job_id

    def process(self, msg, kwargs):
        return f"[{self.job_id}] {msg}", kwargs
