"""Centralized logging configuration for applications embedding svcproxy.

The library itself only creates module loggers; call `setup_logging` from an
application entry point (or via `create_service_proxy(configure_logging=True)`)
to attach handlers.
"""

import logging
import sys
from typing import Optional, Union

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None


def resolve_level(level: Union[int, str]) -> int:
    """Accepts logging.DEBUG or 'debug' and returns the numeric level."""
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), DEFAULT_LOG_LEVEL)


def setup_logging(
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE
) -> None:
    """Configures the root logger.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG or "INFO").
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    level = resolve_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}", exc_info=True)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")

    logging.info(f"Logging configured. Level={logging.getLevelName(level)}")
