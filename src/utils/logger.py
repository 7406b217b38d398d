"""
Logging helper shared by every module.

Usage:
    from src.utils.logger import setup_logger
    logger = setup_logger(__name__)
"""
import logging
import sys

from config.settings import BASE_DIR, LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_level(level_name: str) -> int:
    """Convert a level name like 'debug' to a logging constant (INFO if unknown)."""
    return getattr(logging, str(level_name).upper(), logging.INFO)


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """
    Create (or return) a configured logger.

    Handlers are attached once per logger name so repeated imports do not
    duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_parse_level(level or LOG_LEVEL))

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        logger.addHandler(console)

        if LOG_FILE:
            log_path = BASE_DIR / LOG_FILE
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        logger.propagate = False

    return logger
