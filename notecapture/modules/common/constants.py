"""Common constants used across the application."""

from typing import Callable, Dict, Type

from fastapi import HTTPException, status

from .exceptions import (
    ConfigurationMissingError,
    DomainError,
    IngestionFailedError,
    RemoteServiceError,
    RemoteServiceTimeoutError,
    ResourceExistsError,
    ResourceNotFoundError,
    ValidationError,
)

EXCEPTION_MAPPING: Dict[Type[DomainError], Callable[[str], HTTPException]] = {
    ResourceNotFoundError: lambda message: HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message),
    ResourceExistsError: lambda message: HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message),
    ValidationError: lambda message: HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message),
    ConfigurationMissingError: lambda message: HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message
    ),
    RemoteServiceTimeoutError: lambda message: HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=message),
    RemoteServiceError: lambda message: HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message),
    IngestionFailedError: lambda message: HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Error processing file: {message}"
    ),
}

IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/jpg", "image/gif", "image/bmp"})

CONTEXT_MIME_TYPES = frozenset({"text/plain", "text/markdown", "text/csv", "application/json", "application/pdf"})
CONTEXT_EXTENSIONS = frozenset({".txt", ".md", ".json", ".csv", ".pdf"})
CONTEXT_TEXT_EXTENSIONS = frozenset({".txt", ".md", ".json", ".csv"})

DEFAULT_CONTEXT_CATEGORY = "general"
