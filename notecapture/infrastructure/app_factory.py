from asyncio import Event
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import anyio
import fastapi
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.openapi.utils import get_openapi

from ..modules.common.utils.error_handler import register_exception_handlers
from .config.settings import (
    EnvironmentOption,
    EnvironmentSettings,
    Settings,
    describe_services,
    get_settings,
)
from .database.session import create_tables
from .logging import (
    configure_logging,
    generate_correlation_id,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
)

REQUEST_ID_HEADER = "X-Request-ID"

logger = get_logger(__name__)


async def set_threadpool_tokens(number_of_tokens: int = 100) -> None:
    """Configure the number of threadpool tokens for anyio."""
    limiter = anyio.to_thread.current_default_thread_limiter()
    limiter.total_tokens = number_of_tokens


def lifespan_factory(
    settings: Settings,
    create_tables_on_startup: bool = True,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Factory to create a lifespan async context manager for a FastAPI app.

    On startup the lifespan configures logging, sizes the threadpool used for
    file and image I/O, makes sure the upload directory exists and,
    optionally, creates the database tables.

    Args:
        settings: Application settings
        create_tables_on_startup: Whether to create database tables on startup

    Returns:
        An async context manager for FastAPI's lifespan
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        initialization_complete = Event()
        app.state.initialization_complete = initialization_complete

        configure_logging()
        await set_threadpool_tokens()

        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

        if create_tables_on_startup:
            await create_tables()

        services = describe_services(settings)
        for service, configured in services.items():
            if not configured:
                logger.warning(f"{service} is not configured")

        initialization_complete.set()
        logger.info(f"{settings.APP_NAME} started", extra={"environment": settings.ENVIRONMENT.value})
        yield

    return lifespan


def add_correlation_id_middleware(application: FastAPI) -> None:
    """Tag every log record emitted during a request with the request's ID.

    The ID is taken from the ``X-Request-ID`` header when present and is
    echoed back on the response.
    """

    @application.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response


def create_application(
    router: APIRouter,
    settings: Optional[Settings] = None,
    lifespan: Optional[Callable[[FastAPI], AbstractAsyncContextManager[None]]] = None,
    create_tables_on_startup: Optional[bool] = None,
    enable_cors: Optional[bool] = None,
    cors_origins: Optional[List[str]] = None,
    enable_docs_in_production: Optional[bool] = None,
    enable_gzip: Optional[bool] = None,
    title: Optional[str] = None,
    summary: Optional[str] = None,
    description: Optional[str] = None,
    version: Optional[str] = None,
    **kwargs: Any,
) -> FastAPI:
    """Creates and configures a FastAPI application based on the provided settings.

    Every keyword left as None falls back to the matching setting.

    Args:
        router: The APIRouter containing the routes for the application
        settings: Application settings (uses get_settings() if None)
        lifespan: Optional lifespan function; defaults to ``lifespan_factory(settings)``
        create_tables_on_startup: Whether to create database tables on startup
        enable_cors: Whether to enable CORS middleware
        cors_origins: List of allowed origins for CORS
        enable_docs_in_production: Whether to serve API docs in production
        enable_gzip: Whether to enable GZip compression middleware
        title: The title of the API
        summary: A short summary of the API
        description: A detailed description of the API (supports Markdown)
        version: The version of the API
        **kwargs: Additional keyword arguments passed to FastAPI constructor

    Returns:
        A configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    _create_tables_on_startup = (
        create_tables_on_startup if create_tables_on_startup is not None else settings.CREATE_TABLES_ON_STARTUP
    )
    _enable_cors = enable_cors if enable_cors is not None else settings.CORS_ENABLED
    _cors_origins = cors_origins if cors_origins is not None else settings.CORS_ORIGINS_LIST
    _enable_docs_in_production = (
        enable_docs_in_production if enable_docs_in_production is not None else settings.ENABLE_DOCS_IN_PRODUCTION
    )
    _enable_gzip = enable_gzip if enable_gzip is not None else settings.GZIP_ENABLED

    metadata: Dict[str, Any] = {
        "title": title or settings.APP_NAME,
        "description": description or settings.APP_DESCRIPTION,
        "version": version or settings.VERSION,
    }
    if summary is not None:
        metadata["summary"] = summary

    show_docs = isinstance(settings, EnvironmentSettings) and (
        settings.ENVIRONMENT != EnvironmentOption.PRODUCTION or _enable_docs_in_production
    )

    # Docs are served by the custom routes below, never by FastAPI's defaults.
    kwargs.update(metadata)
    kwargs.update({"docs_url": None, "redoc_url": None, "openapi_url": None})

    if lifespan is None:
        lifespan = lifespan_factory(settings, create_tables_on_startup=_create_tables_on_startup)

    application = FastAPI(lifespan=lifespan, **kwargs)

    application.include_router(router)
    register_exception_handlers(application)
    add_correlation_id_middleware(application)

    if _enable_cors:
        methods = settings.CORS_ALLOW_METHODS
        headers = settings.CORS_ALLOW_HEADERS
        application.add_middleware(
            CORSMiddleware,
            allow_origins=_cors_origins,
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            allow_methods=methods.split(",") if isinstance(methods, str) else methods,
            allow_headers=headers.split(",") if isinstance(headers, str) else headers,
            expose_headers=[REQUEST_ID_HEADER],
        )

    if _enable_gzip:
        application.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)

    if show_docs:
        docs_router = APIRouter()
        openapi_url = settings.OPENAPI_URL

        @docs_router.get(settings.DOCS_URL, include_in_schema=False)
        async def get_swagger_documentation() -> fastapi.responses.HTMLResponse:
            return get_swagger_ui_html(openapi_url=openapi_url, title="docs")

        @docs_router.get(settings.REDOC_URL, include_in_schema=False)
        async def get_redoc_documentation() -> fastapi.responses.HTMLResponse:
            return get_redoc_html(openapi_url=openapi_url, title="redoc")

        @docs_router.get(openapi_url, include_in_schema=False)
        async def openapi() -> Dict[str, Any]:
            return get_openapi(
                title=metadata["title"],
                version=metadata["version"],
                description=metadata["description"],
                routes=application.routes,
            )

        application.include_router(docs_router)

    return application
