"""
Structured logging configuration for the action argument engine.

Log lines are JSON objects. Records about a single argument (a rejected
request, a failed default) carry the action name, the dotted argument path
and the failure kind; the formatter groups those under an ``argument`` key
so log pipelines can index them without parsing messages.

Hosts call ``setup_logging`` once at startup; importing the package never
configures logging on its own. Without an explicit level the configured
``log_level`` setting (``ACTION_ARGS_LOG_LEVEL``) is used.
"""

import logging
import logging.config
import json
import sys
from datetime import datetime, UTC
from typing import Dict, Any, Optional
from pathlib import Path

from .config_manager import get_config_manager

PACKAGE_LOGGER = "action_args"

# Context keys describing the argument a record is about
ARGUMENT_FIELDS = ("action", "path", "kind")


class StructuredFormatter(logging.Formatter):
    """Formats records as JSON, grouping argument context under ``argument``."""

    def __init__(self, service_name: str = "action-args"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        context = dict(getattr(record, "extra", None) or {})
        argument = {key: context.pop(key) for key in ARGUMENT_FIELDS if key in context}
        if argument:
            log_entry["argument"] = argument
        log_entry.update(context)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def build_logging_config(
    log_level: str = "INFO",
    service_name: str = "action-args",
    log_file_path: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the dictConfig mapping used by setup_logging.

    Only the package logger is configured; the host's root logger is left
    alone.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log entries
        log_file_path: Optional path of a rotating log file

    Returns:
        Mapping accepted by logging.config.dictConfig
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "structured",
            "stream": sys.stdout
        }
    }
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "structured",
            "filename": log_file_path,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "encoding": "utf8"
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {"()": StructuredFormatter, "service_name": service_name}
        },
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "level": log_level,
                "handlers": list(handlers),
                "propagate": False
            }
        }
    }


def setup_logging(
    log_level: Optional[str] = None,
    service_name: str = "action-args",
    log_file_path: Optional[str] = None
) -> None:
    """
    Configure structured logging for the package logger.

    Args:
        log_level: Logging level; defaults to the configured ``log_level``
        service_name: Name of the service for log entries
        log_file_path: Path to a rotating log file, console only if omitted
    """
    if log_level is None:
        log_level = get_config_manager().config.log_level
    logging.config.dictConfig(
        build_logging_config(log_level.upper(), service_name, log_file_path)
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **context: Context fields, e.g. action, path and kind
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    record = logger.makeRecord(logger.name, levelno, "", 0, message, (), None)
    record.extra = dict(context)
    logger.handle(record)
