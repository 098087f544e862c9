"""
Loguru setup for the Timey service.

Every record carries a `user_id` extra. Code that acts on one profile logs
through `profile_logger(user_id)`; everything else shows "-" in that column.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

NO_USER = "-"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[user_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[user_id]} | {name}:{line} - {message}"


def profile_logger(user_id: str):
    """Logger bound to one profile's user id."""
    return logger.bind(user_id=user_id)


def setup_logger(
    level: str = "INFO",
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default sink with Timey's console sink and, if
    `log_file` is set, a rotating file sink.
    """
    logger.remove()
    logger.configure(extra={"user_id": NO_USER})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )

    logger.debug(f"Logging at {level}" + (f", file {log_file}" if log_file else ""))
