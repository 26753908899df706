"""
Structured logging utilities for workflow logging
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import LoggingSettings


class StructuredLogger:
    """
    Structured logger that outputs JSON logs for easy parsing and querying
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log(self, level: str, message: str, **kwargs):
        """Log with structured data"""
        log_data = {"message": message, **kwargs}
        self.logger.log(
            logging.getLevelName(level.upper()), json.dumps(log_data, default=str)
        )

    def info(self, message: str, **kwargs):
        """Log info level"""
        self.log("info", message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning level"""
        self.log("warning", message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error level"""
        self.log("error", message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug level"""
        self.log("debug", message, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_obj.update(record.extra_data)

        return json.dumps(log_obj)


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Install a stdout handler on the ``visitflow`` logger."""
    settings = settings or LoggingSettings()
    root = logging.getLogger("visitflow")
    root.setLevel(settings.level)

    for handler in list(root.handlers):
        if getattr(handler, "_visitflow_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if settings.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler._visitflow_handler = True
    root.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger"""
    return StructuredLogger(name)
