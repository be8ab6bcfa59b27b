"""
Studio Logger
Per-module loggers for the studio package
"""

import logging
import sys
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _package_handler_installed(logger_name: str) -> bool:
    """True once setup_logging has configured the logger's top-level package"""
    package = logger_name.split(".")[0]
    return package != logger_name and bool(logging.getLogger(package).handlers)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a studio module.

    Until setup_logging runs, each module logger gets its own console handler
    at ``Settings.log_level``. Afterwards new loggers propagate to the package
    handler instead.

    Args:
        name: Logger name (usually __name__)
    """
    settings = get_settings()
    logger = logging.getLogger(name or settings.service_name)

    if logger.handlers or _package_handler_installed(logger.name):
        return logger

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    return logger
