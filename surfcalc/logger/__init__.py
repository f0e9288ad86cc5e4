"""Logger module for surfcalc

This module provides a flexible logging interface that allows users to
drop in their own logger implementations.

Usage:
    from surfcalc.logger import session_logger as logger

    logger.info("Integration finished", volume=4.0, resolution=50)

    # Or implement your own
    class MyCustomLogger(Logger):
        def info(self, message: str, **kwargs):
            ...
"""

import logging
import os

from surfcalc.logger.base import Logger
from surfcalc.logger.structured_logger import StructuredLogger

# Configuration from environment
LOG_LEVEL_STR = os.environ.get("SURFCALC_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("SURFCALC_LOG_FILE")
LOG_JSON = os.environ.get("SURFCALC_LOG_JSON", "false").lower() == "true"

# Map string level to logging constant
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO)

# Shared logger instance
session_logger: Logger = StructuredLogger(
    level=LOG_LEVEL,
    log_file=LOG_FILE,
    json_format=LOG_JSON
)

__all__ = [
    "Logger",
    "StructuredLogger",
    "session_logger",
]
