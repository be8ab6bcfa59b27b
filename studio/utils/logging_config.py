"""
Studio Logging Configuration
Structured logging with JSON output for production runs
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from .logger import DATE_FORMAT, LOG_FORMAT


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record"""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = getattr(
            record, "service_name", record.name.split(".")[0]
        )

        # Generation context, when the caller attached it
        for attr in ("operation", "attempt", "wait_seconds", "key"):
            if hasattr(record, attr):
                log_record[attr] = getattr(record, attr)


def setup_logging(
    service_name: str, log_level: str = "INFO", json_logs: bool = True
) -> logging.Logger:
    """
    Setup logging for the studio package

    Args:
        service_name: Name of the root logger to configure (usually "studio")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to use JSON formatting (True for production)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, log_level.upper()))

    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))

    if json_logs:
        formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
            },
        )
    else:
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.propagate = False

    # Module loggers from get_logger hand their records to this handler
    prefix = f"{service_name}."
    for name, child in logging.root.manager.loggerDict.items():
        if name.startswith(prefix) and isinstance(child, logging.Logger):
            child.handlers.clear()
            child.setLevel(logging.NOTSET)

    return logger
