"""
Logging configuration for extloader.

The library itself only creates module loggers; applications and the CLI
call ``setup_logging`` to attach a handler to the ``extloader`` logger.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from extloader.config import settings

STANDARD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``extloader`` logger.

    Args:
        level: Log level name (defaults to ``settings.log_level``)
        log_format: ``standard`` or ``json`` (defaults to ``settings.log_format``)

    Returns:
        The configured package logger

    Note:
        Calling this repeatedly replaces the handler instead of stacking them.
    """
    level_name = (level or settings.log_level).upper()
    fmt = (log_format or settings.log_format).lower()

    logger = logging.getLogger("extloader")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_extloader_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._extloader_handler = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(STANDARD_FORMAT))
    logger.addHandler(handler)

    return logger
