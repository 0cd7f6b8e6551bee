"""Log sink setup for applications embedding the coordinator."""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}"
)


def configure_logging(level: str = "INFO", sink=sys.stderr) -> int:
    """
    Replace loguru's default handler with a single sink at ``level``.

    Returns:
        int: Handler id, usable with ``logger.remove``.
    """
    logger.remove()
    return logger.add(sink, level=level.upper(), format=LOG_FORMAT, backtrace=False, diagnose=False)
