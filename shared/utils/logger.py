"""
Logging configuration for the validation pipeline.

Every module gets its logger from ``setup_logger(__name__)`` so that the
pipeline, providers and API share one format and level.
"""

import logging
import sys
from pathlib import Path
from typing import Any

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BANNER_WIDTH = 70


def setup_logger(name: str) -> logging.Logger:
    """
    Return a logger writing to stdout, plus ``logs/validation.log`` when
    LOG_TO_FILE is set outside debug mode.

    Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    stream = logging.StreamHandler(sys.stdout)
    stream.setLevel(settings.LOG_LEVEL)
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if settings.LOG_TO_FILE and not settings.DEBUG:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "validation.log")
        file_handler.setLevel(settings.LOG_LEVEL)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log ``error`` as one line, with the traceback only in debug mode."""
    prefix = f"{context}: " if context else ""
    logger.error(f"{prefix}{type(error).__name__}: {error}")

    if settings.DEBUG:
        logger.exception("Full traceback:")


def log_run_banner(logger: logging.Logger, title: str, **fields: Any) -> None:
    """
    Log a framed block for the start or end of a validation run.

    Example:
        log_run_banner(logger, "Validation run started", run_id=run_id, provider="azure")
    """
    logger.info("=" * BANNER_WIDTH)
    logger.info(title)
    for key, value in fields.items():
        logger.info(f"  {key.replace('_', ' ')}: {value}")
    logger.info("=" * BANNER_WIDTH)
