"""
Logging configuration for the roster search application.

One console handler plus, unless disabled through ``APP_LOG_TO_FILE``, an
application log and an error-only log under ``APP_LOG_DIR``.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from config.settings import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
APP_LOG_FILE = "roster_search.log"
ERROR_LOG_FILE = "errors.log"

# Request-level chatter from the HTTP and OpenAI clients
NOISY_LOGGERS = ("openai", "httpx", "httpcore")


def _with_format(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: Optional[bool] = None,
) -> List[logging.Handler]:
    """
    Replace the root logger's handlers with the application handlers.

    Arguments default to the ``APP_`` settings.

    Returns:
        The handlers that were installed.
    """
    level_name = (level or settings.app.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    to_file = settings.app.log_to_file if log_to_file is None else log_to_file
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [_with_format(logging.StreamHandler(sys.stdout), log_level, formatter)]
    if to_file:
        directory = Path(log_dir or settings.app.log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_with_format(
            logging.FileHandler(directory / APP_LOG_FILE, encoding="utf-8"), log_level, formatter
        ))
        handlers.append(_with_format(
            logging.FileHandler(directory / ERROR_LOG_FILE, encoding="utf-8"), logging.ERROR, formatter
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging configured with level: {level_name}, files: {'on' if to_file else 'off'}")
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(name)
