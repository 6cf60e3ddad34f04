"""Loguru sink configuration"""
import sys

from loguru import logger

from .config import settings


def configure_logging(level: str = None, log_file: str = None) -> None:
    """Replace the default loguru sink with the configured ones."""
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file:
        logger.add(log_file, rotation=settings.log_rotation, level="DEBUG")

    logger.debug(f"Logging configured at level {level}")
