"""
================================================================================
Autotest Tools Common Utilities
================================================================================

Shared logging setup for the runner, the pytest session and report tools.

Exports:
    - init_logger: Initialize loguru with console + rolling file sinks
    - get_logger: Return the initialized logger
    - ensure_directories: Create output directories

Usage:
    from autotest_tools.common import init_logger

    init_logger(level="DEBUG", log_file="Logs/test-log.log")

================================================================================
"""

from .global_config import (
    ensure_directories,
    get_logger,
    init_logger,
    is_logger_initialized,
)

__all__ = [
    "ensure_directories",
    "get_logger",
    "init_logger",
    "is_logger_initialized",
]
