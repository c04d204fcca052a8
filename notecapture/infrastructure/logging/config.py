"""Environment-aware logging configuration.

Configuration Logic:
- Development: Verbose colored console logging
- Staging: Structured console logging, optional file output
- Production: JSON console logging with noisy libraries quieted
- Testing: Null handler, errors only

A correlation ID filter is installed on every handler so that all records
emitted while a request is in flight (including every step of a batch
ingestion) carry the request's ID.
"""

import contextvars
import logging
import uuid

from ..config.settings import EnvironmentOption, get_settings
from .handlers import (
    create_console_handler,
    create_file_handler,
    create_null_handler,
)

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id")


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds the current correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        setattr(record, "correlation_id", get_correlation_id() or "no-correlation")
        return True


def setup_logging_configuration() -> None:
    """Configure the root logger from application settings.

    Called once, lazily, the first time ``get_logger`` is used.
    """
    settings = get_settings()

    logging.getLogger().handlers.clear()

    if settings.ENVIRONMENT == EnvironmentOption.STAGING:
        handlers = _staging_handlers(settings)
    elif settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        handlers = _production_handlers(settings)
    else:
        handlers = _development_handlers(settings)

    root_logger = logging.getLogger()
    for handler in handlers:
        if settings.LOG_CORRELATION_ID:
            handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL_INT)

    if settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        _configure_noisy_loggers()


def _file_handler(settings) -> logging.Handler:
    return create_file_handler(
        filepath=settings.LOG_FILE_PATH,
        format_type="structured",
        level=logging.DEBUG,
        max_bytes=settings.LOG_FILE_MAX_SIZE,
        backup_count=settings.LOG_FILE_BACKUP_COUNT,
    )


def _development_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.DEBUG if settings.LOG_DEVELOPMENT_VERBOSE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="detailed", level=console_level, use_colors=True))

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _staging_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        handlers.append(
            create_console_handler(format_type=settings.LOG_FORMAT, level=settings.LOG_LEVEL_INT, use_colors=False)
        )

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _production_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.WARNING if settings.LOG_PRODUCTION_OPTIMIZE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="json", level=console_level, use_colors=False))

    return handlers


def _configure_noisy_loggers() -> None:
    """Quiet third-party loggers that are chatty at INFO."""
    noisy_loggers = {
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        "openai": logging.WARNING,
        "asyncpg": logging.WARNING,
        "sqlalchemy.engine": logging.WARNING,
        "sqlalchemy.pool": logging.WARNING,
    }

    for logger_name, level in noisy_loggers.items():
        logging.getLogger(logger_name).setLevel(level)


def configure_testing_logging() -> None:
    """Configure minimal logging for test runs."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(create_null_handler())
    root_logger.setLevel(logging.ERROR)


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Set the correlation ID for the current context."""
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: contextvars.Token) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context.

    Returns:
        Current correlation ID or None if not set
    """
    try:
        return correlation_id_var.get()
    except LookupError:
        return None


def generate_correlation_id() -> str:
    return str(uuid.uuid4())
