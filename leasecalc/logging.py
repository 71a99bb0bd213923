"""
Logging configuration for the lease calculator.

The service logs to stdout either as readable lines (local runs) or as one
JSON object per line (containers). Calculation modules only ever call
logging.getLogger(__name__); this module decides where the records go.
"""

import json
import logging
import sys
from datetime import datetime, timezone

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at the service level
QUIET_LOGGERS = ("uvicorn.access", "httpx")


class JsonFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_formatter(format_type: str) -> logging.Formatter:
    """Formatter for "json" output; anything else gets the console format."""
    if format_type == "json":
        return JsonFormatter()
    return logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """
    Route all logging to a single stdout handler.

    Args:
        level: Log level name; unknown names fall back to INFO
        format_type: "standard" or "json"
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(format_type))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    logging.getLogger("leasecalc").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
