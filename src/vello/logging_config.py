"""Logging configuration for the command-line entry point.

Library modules only create named loggers; handlers are attached here,
once, by whoever owns the process.
"""

import logging
import sys
from typing import Optional

from vello.config import settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the root logger with a console handler.

    Args:
        level: Log level name. Defaults to ``settings.log_level``.

    Returns:
        The configured root logger.
    """
    level_name = (level or settings.log_level).upper()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger
