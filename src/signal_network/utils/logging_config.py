"""Logging setup for the signal coordination system."""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger with a console handler and an optional file handler.

    Args:
        log_level: Name of the logging level (DEBUG, INFO, ...). Unknown names fall back to INFO.
        log_file: Optional path of a log file; parent directories are created.
    """
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)
    logging.getLogger(__name__).debug(f"Logging configured at level {logging.getLevelName(level)}")
