"""
Loguru logger configured once and imported across the package.
"""

import sys

from loguru import logger

from dating_api.config import LOG_FILE, LOG_LEVEL


def setup_logger() -> None:
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()

    logger.add(
        sys.stderr,
        level=LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # JSON lines for structured analysis
    logger.add(
        str(LOG_FILE),
        level="DEBUG",
        rotation="10 MB",
        retention="14 days",
        serialize=True,
    )


setup_logger()

__all__ = ["logger"]
