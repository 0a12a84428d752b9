"""
Central logging configuration for timeweaver.

Sets package logger levels and installs a colorized console handler when the
application has not configured logging itself.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

PACKAGE_LOGGERS = [
    "timeweaver",
    "timeweaver.calendar.ics_parser",
    "timeweaver.domain.event_filter",
    "timeweaver.domain.overlap",
    "timeweaver.domain.aggregation",
    "timeweaver.core.config",
]

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _build_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    # HH:MM:SS  LEVEL   logger.name: message
    fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
    handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
    return handler


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for timeweaver.

    Args:
        debug_mode: Whether to enable debug logging for timeweaver modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        TIMEWEAVER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        TIMEWEAVER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("TIMEWEAVER_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("TIMEWEAVER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if the application has none (avoid duplicate output)
    if not root_logger.handlers:
        root_logger.addHandler(_build_handler(root_level))

    package_level = logging.DEBUG if final_debug else logging.INFO
    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(package_level)

    if final_debug:
        root_logger.info("Debug logging enabled for timeweaver modules")
    else:
        root_logger.debug("Production logging configuration applied")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for name in PACKAGE_LOGGERS:
        status[name] = logging.getLevelName(logging.getLogger(name).level)
    return status
