"""
================================================================================
Global Logging Setup for Automation Tools
================================================================================

Centralized Loguru configuration shared by the test runner, the pytest
session and the report tools.

Features:
    - One-time logger initialization (idempotent)
    - Colored console sink
    - Daily rolling file sink with bounded retention
    - Output directory bootstrap

Author: Automation Team
License: MIT
================================================================================
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

DEFAULT_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | {message}"
)
DEFAULT_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} | {message}"

_logger_initialized: bool = False


def init_logger(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rotation: Union[str, int] = "00:00",
    retention: Union[str, int] = 7,
    format_str: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    This function should be called at the start of any tool to ensure
    consistent logging across the suite.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of the rolling log file.
        rotation: Loguru rotation rule. "00:00" rolls the file daily.
        retention: Number of rolled files (int) or a duration string to keep.
        format_str: Custom console format string.
        force: Re-initialize even if already configured.
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=format_str or DEFAULT_CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=level.upper(),
            format=DEFAULT_FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
            enqueue=True,
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


def is_logger_initialized() -> bool:
    return _logger_initialized


def get_logger():
    """
    Returns the configured Loguru logger instance.

    Ensures the logger is initialized before returning.
    """
    if not _logger_initialized:
        init_logger()
    return logger


def ensure_directories(*paths: Union[str, Path]) -> None:
    """Create output directories (screenshots, reports, results, logs)."""
    for path in paths:
        Path(path).mkdir(parents=True, exist_ok=True)
