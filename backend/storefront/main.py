"""
FastAPI application entry point.

The lifespan is the composition root: it builds the ``Database`` and the
SES mail transport, stores them on ``app.state`` and disposes of them on
shutdown. Every failure is rendered as ``{success: false, error, message,
requestId}``.
"""

from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.v1 import api_router
from storefront.core.config import Settings, get_settings
from storefront.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from storefront.core.rate_limit import limiter
from storefront.core.security import SECURITY_HEADERS
from storefront.database.connection import Database
from storefront.schemas.common import ErrorResponse
from storefront.services.notifications.aws_clients import get_ses_client

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Build long-lived resources on startup and release them on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    settings: Settings = app.state.settings

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
    )

    with log_performance(logger, "application_startup"):
        database = Database.from_settings(settings)
        if database.engine.dialect.name == "sqlite":
            await database.create_all()
        app.state.database = database
        app.state.mail_transport = get_ses_client(settings)

    yield

    logger.info("Application shutting down")
    with log_performance(logger, "application_shutdown"):
        await database.dispose()


def error_response(
    status_code: int,
    message: str,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=HTTPStatus(status_code).phrase,
        message=message,
        request_id=get_request_id() or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True),
        headers=headers,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail,
        )
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation errors are reported as 400 with each failing field."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))

    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        problems=problems,
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "; ".join(problems))


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Rate limit exceeded: {exc.detail}",
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log unexpected exceptions and return a generic 500.
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
    )


async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


async def request_logging_middleware(request: Request, call_next):
    """
    Set the correlation id, log the request and echo ``X-Request-ID``.
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response
    finally:
        clear_context()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the storefront API application.

    Args:
        settings: Settings to use; defaults to the cached environment settings

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Fashion storefront backend API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.limiter = limiter

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_logging_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.get("/health", tags=["Health"], summary="Health check endpoint")
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/ready", tags=["Health"], summary="Readiness check endpoint")
    async def readiness_check(request: Request):
        """
        Report ready only when the database answers.
        """
        database: Optional[Database] = getattr(request.app.state, "database", None)
        database_ready = database is not None and await database.check_health(max_retries=1)

        if not database_ready:
            logger.warning("Readiness check failed", database="unhealthy")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "not_ready",
                    "service": settings.app_name,
                    "database": "unhealthy",
                },
            )

        return {
            "status": "ready",
            "service": settings.app_name,
            "version": settings.app_version,
            "database": "healthy",
        }

    @app.get("/live", tags=["Health"], summary="Liveness check endpoint")
    async def liveness_check() -> dict[str, str]:
        return {
            "status": "alive",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_app()
