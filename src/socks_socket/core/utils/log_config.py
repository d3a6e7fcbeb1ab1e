"""Logging configuration for the SOCKS5 client.

This module provides centralized logging configuration using Loguru.
The library stays silent until ``setup_logging`` is called, which enables
the ``socks_socket`` loggers and sets up console and rotating file output.
"""

import sys
from pathlib import Path

from loguru import logger

# Logs directory in user's home directory
LOG_DIR = Path.home() / ".socks-socket" / "logs"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(debug: bool = False, log_dir: Path | None = LOG_DIR) -> None:
    """Enable library logging with console and file handlers.

    Args:
        debug: Log DEBUG to the console instead of INFO
        log_dir: Directory for the rotating log file, or None for console only
    """
    logger.remove()  # Remove default handler
    logger.enable("socks_socket")

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if debug else "INFO",
        backtrace=True,
        diagnose=debug,
    )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "client.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
            backtrace=True,
            diagnose=False,
        )


__all__ = ["LOG_DIR", "logger", "setup_logging"]
