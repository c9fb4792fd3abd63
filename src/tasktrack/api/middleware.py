"""Middleware and error handlers for the FastAPI application."""

import logging

from fastapi import FastAPI, Request, status  # type: ignore[import-untyped]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from tasktrack.core.config import ConfigManager
from tasktrack.core.errors import (
    ActiveEntryError,
    EntryNotActiveError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def setup_cors(app: FastAPI, config: ConfigManager) -> None:
    """Configure CORS middleware.

    Args:
        app: FastAPI application instance
        config: Configuration manager

    Note:
        CORS is configured based on the api.cors section in config.
        By default, only localhost origins are allowed.
    """
    if not config.get("api.cors.enabled", True):
        return

    origins = config.get("api.cors.origins", ["http://localhost:3000"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _error(status_code: int, detail: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_code": error_code},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map core errors to HTTP responses.

    Validation problems are the caller's fault (400), conflicts with the
    running timer are 409, and storage failures are reported generically
    (503) with the cause only in the server log.
    """

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "validation_error")

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc), "not_found")

    @app.exception_handler(ActiveEntryError)
    async def active_entry_error(request: Request, exc: ActiveEntryError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "timer_running")

    @app.exception_handler(EntryNotActiveError)
    async def entry_not_active_error(request: Request, exc: EntryNotActiveError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "timer_not_running")

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
        return _error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Storage is temporarily unavailable. Please try again.",
            "storage_error",
        )


def setup_middleware(app: FastAPI, config: ConfigManager) -> None:
    """Set up all middleware and error handlers for the application."""
    setup_cors(app, config)
    setup_exception_handlers(app)
