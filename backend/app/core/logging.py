"""Loguru sink configuration."""

import sys

from loguru import logger

from app.core.config import settings


def setup_logging() -> None:
    """Replace the default loguru sink with one honouring settings."""
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}"
        ),
        backtrace=settings.debug,
        diagnose=settings.debug,
    )
