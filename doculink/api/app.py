"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
exception handlers and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from doculink import __version__
from doculink.api.clients import router as clients_router
from doculink.api.documents import router as documents_router
from doculink.config import Settings, get_settings
from doculink.errors import (
    ConflictError,
    DatabaseError,
    DocuLinkError,
    NotFoundError,
    ProcessingError,
    ValidationError,
)
from doculink.models.schemas import ErrorResponse
from doculink.parsing.pdf_parser import PDFExtractor
from doculink.parsing.web_scraper import WebScraper
from doculink.storage.database import create_engine, create_session_factory, init_models
from doculink.storage.files import FileStorage

logger = logging.getLogger(__name__)

GENERIC_PROCESSING_MESSAGE = "An error occurred while processing the request"
GENERIC_SERVER_MESSAGE = "Internal server error"


def _error_response(
    status_code: int,
    error: DocuLinkError,
    detail: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        detail=detail or error.message,
        reason=error.reason,
        violations=getattr(error, "violations", []),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _register_exception_handlers(application: FastAPI, settings: Settings) -> None:
    """Map typed failures onto HTTP status codes."""

    @application.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @application.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @application.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, exc)

    @application.exception_handler(ProcessingError)
    async def handle_processing_error(request: Request, exc: ProcessingError) -> JSONResponse:
        if exc.reason == "service_unavailable":
            return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)

        logger.error(f"{request.method} {request.url.path} failed: {exc.message} (cause: {exc.cause!r})")
        detail = None if settings.is_development else GENERIC_PROCESSING_MESSAGE
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, detail)

    @application.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} (cause: {exc.cause!r})")
        detail = None if settings.is_development else GENERIC_SERVER_MESSAGE
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, detail)

    @application.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        body = ErrorResponse(detail=GENERIC_SERVER_MESSAGE, reason="internal_error")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())


def create_app(
    settings: Settings | None = None,
    scraper_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted.
        scraper_transport: Optional httpx transport for the web scraper.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Manage application startup and shutdown lifecycle.

        Creates the database engine and tables, then wires storage and the
        enabled extractors onto app.state.

        Args:
            app: The FastAPI application instance.

        Yields:
            Control to the application while it runs.
        """
        # Startup
        logger.info(f"Starting DocuLink API ({settings.environment})...")
        engine = create_engine(settings.database_url)
        await init_models(engine)

        storage = FileStorage(settings.storage_root)
        app.state.file_storage = storage
        app.state.session_factory = create_session_factory(engine)
        app.state.pdf_extractor = (
            PDFExtractor(storage, settings.upload_dir, settings.max_upload_size)
            if settings.enable_pdf_processing
            else None
        )
        app.state.web_scraper = (
            WebScraper(
                timeout=settings.scraper_timeout,
                max_redirects=settings.scraper_max_redirects,
                user_agent=settings.scraper_user_agent,
                max_response_bytes=settings.scraper_max_response_bytes,
                transport=scraper_transport,
            )
            if settings.enable_web_scraping
            else None
        )
        if app.state.pdf_extractor is None:
            logger.warning("PDF processing is disabled")
        if app.state.web_scraper is None:
            logger.warning("Web scraping is disabled")

        yield

        # Shutdown
        logger.info("Shutting down DocuLink API...")
        await engine.dispose()

    application = FastAPI(
        title="DocuLink API",
        description=(
            "Document ingestion API. Extracts text from uploaded PDFs and from "
            "single web pages, cleans it and stores it as documents owned by clients."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.settings = settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    _register_exception_handlers(application, settings)

    application.include_router(clients_router)
    application.include_router(documents_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "doculink", "version": __version__}

    return application


app = create_app()
