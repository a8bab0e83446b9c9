"""
FastAPI application entry point for the docgate conversion gateway.

This module initializes the FastAPI application with configuration,
middleware, error handlers and routing, and runs the external tool check
before the server accepts any traffic.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from docgate.api import conversion, health
from docgate.config import Settings, settings
from docgate.exceptions import BaseServiceError, DependencyError
from docgate.middleware import LoggingMiddleware
from docgate.services.dependencies import assert_startup_dependencies
from docgate.utils.fs import ensure_directory


def initialize_dependencies(app_settings: Settings) -> None:
    """
    Verify external tools once, before the server starts serving.

    A missing tool ends the process; there is no degraded mode.
    """
    try:
        assert_startup_dependencies(app_settings)
    except DependencyError as exc:
        logger.error(f"[startup] Dependency check failed: {exc}")
        raise SystemExit(1) from exc
    logger.info("[startup] Dependencies OK: wkhtmltopdf + unrtf available")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown events.
    """
    logger.info("Starting docgate conversion gateway")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    initialize_dependencies(settings)
    ensure_directory(settings.TEMP_DIR)
    logger.info(f"Scratch directory: {settings.TEMP_DIR}")

    yield

    logger.info("Shutting down docgate conversion gateway")


def error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


async def service_error_handler(request: Request, exc: BaseServiceError) -> JSONResponse:
    level = "ERROR" if exc.status_code >= 500 else "WARNING"
    logger.log(level, f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_type}: {exc.message}")
    return error_envelope(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_envelope(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return error_envelope(400, f"Invalid request: {messages}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return error_envelope(500, str(exc) or "Internal error")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="docgate",
        description="Convert TXT, RTF, DOCX, HTML and ZIP uploads or remote URLs to PDF",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routers(app)
    setup_logging()

    return app


def setup_middleware(app: FastAPI) -> None:
    """
    Configure middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID", "X-Batch-Converted", "X-Batch-Skipped", "X-Batch-Failed"],
    )

    app.add_middleware(LoggingMiddleware)  # type: ignore


def setup_exception_handlers(app: FastAPI) -> None:
    """Map every failure to the ``{"ok": false, "error": ...}`` envelope."""
    app.add_exception_handler(BaseServiceError, service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


def setup_routers(app: FastAPI) -> None:
    """
    Include API routers in the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.include_router(health.router, tags=["health"])
    app.include_router(conversion.router, tags=["conversion"])


def setup_logging() -> None:
    """
    Configure logging with loguru.
    """
    logger.remove()  # Remove default handler

    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL,
        colorize=True
    )

    # Add file handler for production
    if settings.ENVIRONMENT == "production":
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        logger.add(
            "logs/app.log",
            rotation="1 day",
            retention="30 days",
            level=settings.LOG_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )


# Create the FastAPI application instance
app = create_app()


def run() -> None:
    """Check the external tools, then serve the app with uvicorn."""
    initialize_dependencies(settings)
    uvicorn.run(
        "docgate.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
