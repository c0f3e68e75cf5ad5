"""
================================================================================
Shoptest Tools Common Utilities
================================================================================

This module provides shared utilities, configuration access, and logging
setup for the shop automation harness.

Exports:
    - ConfigLoader: Singleton configuration manager (YAML + environment)
    - get_config: Convenience function to get configuration values
    - init_logger: Function to initialize loguru logger with standard settings

Usage:
    from shoptest_tools.common import get_config, init_logger

    init_logger()
    base_url = get_config("ui.base_url", "https://www.amazon.com")

================================================================================
"""

import os
import sys
from typing import Any

from loguru import logger

from .config_loader import ConfigLoader, ConfigurationError


# ============================================================
# Configuration Access
# ============================================================

def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get a configuration value.

    Args:
        key: Configuration key using dot notation
        default: Default value if not found

    Returns:
        Configuration value or default

    Example:
        max_links = get_config("links.max_links", 20)
    """
    return ConfigLoader().get(key, default)


# ============================================================
# Logging Setup
# ============================================================

_logger_initialized = False

DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def init_logger(
    level: str = None,
    format_string: str = None,
    log_file: str = None
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="reports/logs/run.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    logger.remove()

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config("logging.format", DEFAULT_LOG_FORMAT)

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


# ============================================================
# Common Utilities
# ============================================================

def safe_json_serialize(obj: Any) -> Any:
    """
    Safely serializes an object to JSON-compatible format.

    Handles common non-serializable types like datetime, Path, Enum, bytes.
    """
    from datetime import datetime, date
    from enum import Enum
    from pathlib import PurePath

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, PurePath):
        return str(obj)
    elif isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "get_config",
    "init_logger",
    "safe_json_serialize",
]
