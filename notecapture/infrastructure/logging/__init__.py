"""Centralized logging infrastructure.

Usage:
    ```python
    from notecapture.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Document saved", extra={"document_id": 12})
    ```
"""

from .config import (
    configure_testing_logging,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
    setup_logging_configuration,
)
from .factory import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
    "configure_testing_logging",
    "generate_correlation_id",
    "get_correlation_id",
    "reset_correlation_id",
    "set_correlation_id",
    "setup_logging_configuration",
]
