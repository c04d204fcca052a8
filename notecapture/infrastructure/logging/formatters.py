"""Logging formatters for the different environments.

Available Formatters:
- SimpleFormatter: Basic console output
- DetailedFormatter: Console output with timestamps, used in development
- StructuredFormatter: key=value pairs, used in staging and log files
- JSONFormatter: One JSON object per line, used in production
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Type

_RESERVED_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the ``extra={...}`` values attached to a record."""
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRIBUTES}


class SimpleFormatter(logging.Formatter):
    """Format: [LEVEL] module_name: message"""

    def __init__(self):
        super().__init__(fmt="[%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")


class DetailedFormatter(logging.Formatter):
    """Format: YYYY-MM-DD HH:MM:SS [LEVEL] module_name: message"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s [%(levelname)8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class StructuredFormatter(logging.Formatter):
    """Structured formatter with key-value pairs.

    Format: timestamp=... level=LEVEL module=name message="text" key1=value1
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()
        parts = [
            f"timestamp={timestamp}",
            f"level={record.levelname}",
            f"module={record.name}",
            f'message="{record.getMessage()}"',
        ]

        for key, value in _extra_fields(record).items():
            if isinstance(value, (int, float, bool)):
                parts.append(f"{key}={value}")
            else:
                parts.append(f'{key}="{value}"')

        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            exc_text_escaped = exc_text.replace("\n", "\\n")
            parts.append(f'exception="{exc_text_escaped}"')

        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """JSON formatter for log aggregation in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line_number": record.lineno,
        }

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False)


def get_formatter(format_type: str) -> logging.Formatter:
    """Get the formatter for ``format_type``.

    Raises:
        ValueError: If format_type is not recognized
    """
    formatters: dict[str, Type[logging.Formatter]] = {
        "simple": SimpleFormatter,
        "detailed": DetailedFormatter,
        "structured": StructuredFormatter,
        "json": JSONFormatter,
    }

    formatter_class = formatters.get(format_type.lower())
    if formatter_class is None:
        raise ValueError(f"Unknown format type: {format_type}. Available: {', '.join(formatters.keys())}")

    return formatter_class()
