import logging
import sys
from pathlib import Path
from typing import Optional

from fileshare import config

LOGGER_NAME = "fileshare"

DETAILED_FORMAT = '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def console_handler(level: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level.upper())
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def file_handler(log_dir: str) -> logging.Handler:
    """Detailed DEBUG log written to ``<log_dir>/fileshare.log``."""
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(logs_dir / config.LOG_FILE, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    return handler


def setup_logger(log_dir: Optional[str] = None):
    """Return the ``fileshare`` logger, attaching its handlers on first use.

    Console output is always on. A log file is written only when a directory
    is given here or through ``FILESHARE_LOG_DIR``.
    """
    logger = logging.getLogger(LOGGER_NAME)
    # Modules call this at import time, configure the handlers only once
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    log_dir = log_dir or config.LOG_DIR
    if log_dir:
        logger.addHandler(file_handler(log_dir))
    logger.addHandler(console_handler(config.LOG_LEVEL))

    return logger
