"""
logging_setup.py

Configure application logging on the root logger: console output plus a
rotating log file, at the level named in the configuration.
"""

import os
import logging
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def _has_file_handler(logger, log_file_path) -> bool:
    target = os.path.abspath(log_file_path)
    return any(
        isinstance(handler, RotatingFileHandler) and handler.baseFilename == target
        for handler in logger.handlers
    )


def setup_logging(log_dir="log", log_file_name="telemetry_bridge.log", log_level="INFO"):
    """
    Attach console and rotating file handlers to the root logger.

    Calling this again for the same log file only updates the level. Unknown
    level names fall back to INFO.

    Args:
        log_dir (str): Directory for the log file, created if missing.
        log_file_name (str): Name of the log file.
        log_level (str): Logging level name, e.g. "DEBUG".

    Returns:
        logging.Logger: The root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    log_file_path = os.path.join(log_dir, log_file_name)
    if _has_file_handler(logger, log_file_path):
        return logger

    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(log_file_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
