#!/usr/bin/env python3
"""
Logging utilities for devdrive.

This module provides functions for setting up and configuring logging
throughout the application.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None
) -> None:
    """
    Configure the logging system.

    Args:
        level: Logging level to use
        log_file: Path to log file (if None, logs to console only)
        log_format: Format string for log messages
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format or LOG_FORMAT)

    # Console goes to stderr; stdout may carry exported assignments
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def level_from_name(name: str, debug: bool = False) -> int:
    """Map a level name to a logging constant; ``debug`` wins."""
    if debug:
        return logging.DEBUG
    return getattr(logging, str(name).upper(), logging.INFO)
