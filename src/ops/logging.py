"""
Logging setup.

Every stream runs on its own thread, so the thread name is part of the
record format; worker threads are named worker-<stream id>.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("uvicorn.access", "tensorflow", "absl")


def resolve_level(log_level: str) -> int:
    level = (log_level or "").upper()
    if level not in VALID_LEVELS:
        raise ValueError(f"Invalid log level: {log_level}")
    return getattr(logging, level)


def setup_logging(log_path: Optional[str], log_level: str = "INFO") -> None:
    """
    Configure the root logger with a console handler and, when log_path is
    set, a file handler. Replaces handlers from any earlier call.
    """
    level = resolve_level(log_level)
    handlers: list = [logging.StreamHandler()]

    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
