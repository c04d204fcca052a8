import logging
import os
from enum import Enum
from typing import List, Optional

from pydantic_settings import BaseSettings
from starlette.config import Config

logger = logging.getLogger(__name__)

current_file_dir = os.path.dirname(os.path.realpath(__file__))
project_root = os.path.abspath(os.path.join(current_file_dir, "..", "..", ".."))

env_paths = [
    "/code/.env",
    os.path.join(project_root, ".env"),
    "/.env",
]

env_path = next((path for path in env_paths if os.path.isfile(path)), env_paths[0])
logger.info(f"Using environment file at: {env_path}")

config = Config(env_path)


class EnvironmentOption(str, Enum):
    """Environment options for the application."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    LOCAL = "local"


class EnvironmentSettings(BaseSettings):
    """Environment-related settings."""

    ENVIRONMENT: EnvironmentOption = config("ENVIRONMENT", default=EnvironmentOption.DEVELOPMENT, cast=EnvironmentOption)


class DatabaseSettings(BaseSettings):
    """Database-related settings."""

    POSTGRES_USER: str = config("POSTGRES_USER", default="postgres")
    POSTGRES_PASSWORD: str = config("POSTGRES_PASSWORD", default="postgres")
    POSTGRES_SERVER: str = config("POSTGRES_SERVER", default="localhost")
    POSTGRES_PORT: int = config("POSTGRES_PORT", default=5432, cast=int)
    POSTGRES_DB: str = config("POSTGRES_DB", default="notecapture")
    POSTGRES_ASYNC_PREFIX: str = config("POSTGRES_ASYNC_PREFIX", default="postgresql+asyncpg://")
    CREATE_TABLES_ON_STARTUP: bool = config("CREATE_TABLES_ON_STARTUP", default=True, cast=bool)

    POSTGRES_POOL_SIZE: int = config("POSTGRES_POOL_SIZE", default=20, cast=int)
    POSTGRES_MAX_OVERFLOW: int = config("POSTGRES_MAX_OVERFLOW", default=0, cast=int)

    # Overrides the assembled PostgreSQL URL, e.g. "sqlite+aiosqlite:///./notecapture.db"
    DATABASE_URL_OVERRIDE: str = config("DATABASE_URL", default="")

    @property
    def DATABASE_URL(self) -> str:
        """Get the full database URL."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"{self.POSTGRES_ASYNC_PREFIX}{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


class CORSSettings(BaseSettings):
    """CORS-related settings."""

    CORS_ENABLED: bool = config("CORS_ENABLED", default=True, cast=bool)
    CORS_ORIGINS: str = config("CORS_ORIGINS", default="*")
    CORS_ALLOW_CREDENTIALS: bool = config("CORS_ALLOW_CREDENTIALS", default=True, cast=bool)

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        """Get CORS origins as a list."""
        if not self.CORS_ORIGINS:
            return ["*"]
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]

    CORS_ALLOW_METHODS: str = config("CORS_ALLOW_METHODS", default="*")
    CORS_ALLOW_HEADERS: str = config("CORS_ALLOW_HEADERS", default="*")


class CompressionSettings(BaseSettings):
    """Compression-related settings."""

    GZIP_ENABLED: bool = config("GZIP_ENABLED", default=True, cast=bool)
    GZIP_MINIMUM_SIZE: int = config("GZIP_MINIMUM_SIZE", default=1000, cast=int)


class APIDocSettings(BaseSettings):
    """API documentation settings."""

    ENABLE_DOCS_IN_PRODUCTION: bool = config("ENABLE_DOCS_IN_PRODUCTION", default=False, cast=bool)
    DOCS_URL: str = config("DOCS_URL", default="/docs")
    REDOC_URL: str = config("REDOC_URL", default="/redoc")
    OPENAPI_URL: str = config("OPENAPI_URL", default="/openapi.json")


class APISettings(BaseSettings):
    """API-related settings."""

    API_PREFIX: str = "/api"


class AppSettings(BaseSettings):
    """Application-related settings."""

    APP_NAME: str = "Note Capture API"
    APP_DESCRIPTION: str = "Image capture, OCR and AI cleanup for ordered note sets"
    DEBUG: bool = config("DEBUG", default=False, cast=bool)
    VERSION: str = "0.1.0"


class LoggingSettings(BaseSettings):
    """Centralized logging configuration settings."""

    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")
    LOG_FORMAT: str = config("LOG_FORMAT", default="structured")  # "simple", "detailed", "structured", "json"

    LOG_CONSOLE_ENABLED: bool = config("LOG_CONSOLE_ENABLED", default=True, cast=bool)
    LOG_FILE_ENABLED: bool = config("LOG_FILE_ENABLED", default=False, cast=bool)
    LOG_FILE_PATH: str = config("LOG_FILE_PATH", default="logs/notecapture.log")
    LOG_FILE_MAX_SIZE: int = config("LOG_FILE_MAX_SIZE", default=10485760, cast=int)
    LOG_FILE_BACKUP_COUNT: int = config("LOG_FILE_BACKUP_COUNT", default=5, cast=int)

    LOG_CORRELATION_ID: bool = config("LOG_CORRELATION_ID", default=True, cast=bool)
    LOG_DEVELOPMENT_VERBOSE: bool = config("LOG_DEVELOPMENT_VERBOSE", default=True, cast=bool)
    LOG_PRODUCTION_OPTIMIZE: bool = config("LOG_PRODUCTION_OPTIMIZE", default=True, cast=bool)

    @property
    def LOG_LEVEL_INT(self) -> int:
        """Convert string log level to integer."""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(self.LOG_LEVEL.upper(), logging.INFO)


class AzureVisionSettings(BaseSettings):
    """Azure Computer Vision (Read API) settings used for text recognition."""

    AZURE_VISION_KEY: str = config("AZURE_VISION_KEY", default="")
    AZURE_VISION_ENDPOINT: str = config("AZURE_VISION_ENDPOINT", default="")


class DocumentIntelligenceSettings(BaseSettings):
    """Azure Document Intelligence settings used for layout analysis.

    Falls back to the Vision credentials when unset, which works for
    multi-service Azure AI resources.
    """

    AZURE_DOCUMENT_INTELLIGENCE_KEY: str = config("AZURE_DOCUMENT_INTELLIGENCE_KEY", default="")
    AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT: str = config("AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT", default="")
    AZURE_DOCUMENT_INTELLIGENCE_API_VERSION: str = config("AZURE_DOCUMENT_INTELLIGENCE_API_VERSION", default="2023-07-31")

    @property
    def LAYOUT_KEY(self) -> str:
        return self.AZURE_DOCUMENT_INTELLIGENCE_KEY or getattr(self, "AZURE_VISION_KEY", "")

    @property
    def LAYOUT_ENDPOINT(self) -> str:
        return self.AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT or getattr(self, "AZURE_VISION_ENDPOINT", "")


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI settings used for AI text cleanup."""

    AZURE_OPENAI_API_KEY: str = config("AZURE_OPENAI_API_KEY", default="")
    AZURE_OPENAI_ENDPOINT: str = config("AZURE_OPENAI_ENDPOINT", default="")
    AZURE_OPENAI_DEPLOYMENT: str = config("AZURE_OPENAI_DEPLOYMENT", default="gpt-4o")
    AZURE_OPENAI_API_VERSION: str = config("AZURE_OPENAI_API_VERSION", default="2024-08-01-preview")
    CLEANUP_TEMPERATURE: float = config("CLEANUP_TEMPERATURE", default=0.3, cast=float)
    CLEANUP_MAX_TOKENS: int = config("CLEANUP_MAX_TOKENS", default=2000, cast=int)
    CLEANUP_INCLUDE_IMAGE: bool = config("CLEANUP_INCLUDE_IMAGE", default=True, cast=bool)


class UploadSettings(BaseSettings):
    """File upload settings."""

    UPLOAD_DIR: str = config("UPLOAD_DIR", default=os.path.join(project_root, "uploads"))
    MAX_UPLOAD_SIZE: int = config("MAX_UPLOAD_SIZE", default=10 * 1024 * 1024, cast=int)
    MAX_BATCH_FILES: int = config("MAX_BATCH_FILES", default=20, cast=int)


class PipelineSettings(BaseSettings):
    """Ingestion pipeline settings."""

    POLL_MAX_ATTEMPTS: int = config("POLL_MAX_ATTEMPTS", default=30, cast=int)
    POLL_INTERVAL_SECONDS: float = config("POLL_INTERVAL_SECONDS", default=1.0, cast=float)
    AZURE_HTTP_TIMEOUT: float = config("AZURE_HTTP_TIMEOUT", default=30.0, cast=float)
    CONTEXT_DOCUMENT_LIMIT: int = config("CONTEXT_DOCUMENT_LIMIT", default=3, cast=int)
    LAYOUT_ANALYSIS_ENABLED: bool = config("LAYOUT_ANALYSIS_ENABLED", default=True, cast=bool)


class Settings(
    EnvironmentSettings,
    DatabaseSettings,
    CORSSettings,
    CompressionSettings,
    APIDocSettings,
    APISettings,
    AppSettings,
    LoggingSettings,
    AzureVisionSettings,
    DocumentIntelligenceSettings,
    AzureOpenAISettings,
    UploadSettings,
    PipelineSettings,
):
    """Main settings class that combines all setting categories."""

    pass


settings = Settings()


def get_settings() -> Settings:
    """Get application settings.

    Returns:
        The application settings.
    """
    return settings


def describe_services(current: Optional[Settings] = None) -> dict[str, bool]:
    """Report which external services have credentials configured."""
    current = current or settings
    return {
        "text_recognition": bool(current.AZURE_VISION_KEY and current.AZURE_VISION_ENDPOINT),
        "layout_analysis": bool(
            current.LAYOUT_ANALYSIS_ENABLED and current.LAYOUT_KEY and current.LAYOUT_ENDPOINT
        ),
        "text_cleanup": bool(current.AZURE_OPENAI_API_KEY and current.AZURE_OPENAI_ENDPOINT),
    }
