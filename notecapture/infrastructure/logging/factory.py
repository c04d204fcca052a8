"""Logger factory with lazy, settings-driven configuration."""

import logging
from threading import Lock

from ..config.settings import get_settings
from .config import setup_logging_configuration

_logging_configured = False
_configuration_lock = Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring the logging stack on first use.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Batch finished", extra={"processed_count": 4, "error_count": 1})
        ```

    Keys passed in ``extra`` must not collide with ``LogRecord`` attributes
    such as ``filename`` or ``message``.
    """
    if not _logging_configured:
        configure_logging()
    return logging.getLogger(name)


def configure_logging() -> None:
    """Configure logging explicitly, e.g. during application startup."""
    global _logging_configured

    with _configuration_lock:
        if _logging_configured:
            return
        setup_logging_configuration()
        _logging_configured = True

    settings = get_settings()
    logging.getLogger(__name__).info(
        f"Logging configured for {settings.ENVIRONMENT.value} environment",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
    )

