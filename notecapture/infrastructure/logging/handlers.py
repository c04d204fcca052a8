"""Logging handlers and the secret-redaction filter they share."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Iterable, Optional

from ..config.settings import get_settings
from .formatters import get_formatter

REDACTED = "***"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


def configured_secrets() -> list[str]:
    """Azure credentials that must never reach a log line."""
    settings = get_settings()
    candidates = (
        settings.AZURE_VISION_KEY,
        settings.AZURE_DOCUMENT_INTELLIGENCE_KEY,
        settings.AZURE_OPENAI_API_KEY,
    )
    return [secret for secret in candidates if secret]


class SecretRedactingFilter(logging.Filter):
    """Replaces known secrets in the rendered message with ``***``."""

    def __init__(self, secrets: Optional[Iterable[str]] = None):
        super().__init__()
        self.secrets = [s for s in (configured_secrets() if secrets is None else secrets) if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True

        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, REDACTED)

        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class ColoredConsoleHandler(logging.StreamHandler):
    """Console handler that colors ``[LEVEL]`` when attached to a TTY."""

    def __init__(self, stream=None):
        super().__init__(stream or sys.stdout)
        isatty = getattr(self.stream, "isatty", None)
        self.use_colors = bool(isatty and isatty()) and sys.platform != "win32"

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = LEVEL_COLORS.get(record.levelname)
        if not (self.use_colors and color):
            return formatted
        return formatted.replace(f"[{record.levelname}]", f"[{color}{record.levelname}{RESET}]", 1)


def _finish(handler: logging.Handler, format_type: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(get_formatter(format_type))
    handler.addFilter(SecretRedactingFilter())
    return handler


def create_console_handler(
    format_type: str = "detailed", level: int = logging.INFO, use_colors: bool = True
) -> logging.Handler:
    """Create a console handler writing to stdout.

    Args:
        format_type: Formatter name, see ``get_formatter``
        level: Minimum log level for this handler
        use_colors: Color level names when the stream is a TTY
    """
    handler = ColoredConsoleHandler() if use_colors else logging.StreamHandler(sys.stdout)
    return _finish(handler, format_type, level)


def create_file_handler(
    filepath: str,
    format_type: str = "structured",
    level: int = logging.DEBUG,
    max_bytes: int = 10485760,
    backup_count: int = 5,
) -> logging.Handler:
    """Create a size-rotated file handler, creating the log directory if needed."""
    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=filepath, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    return _finish(handler, format_type, level)


def create_null_handler() -> logging.Handler:
    return logging.NullHandler()
